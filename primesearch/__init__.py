from .exceptions import InvalidConfiguration, PrimeSearchError, SearchAbandoned
from .generators import BbsGenerator, GeneratorKind, LcgGenerator, make_generator
from .primality import (
    FermatTester,
    MillerRabinTester,
    TesterKind,
    WeakFermatTester,
    make_tester,
)
from .search import (
    BATCH_SIZE,
    SearchBudget,
    SearchRequest,
    SearchResult,
    find_prime,
    run_primality_test,
    search,
    search_many,
)

__all__ = [
    "BATCH_SIZE", "BbsGenerator", "FermatTester", "GeneratorKind", "InvalidConfiguration",
    "LcgGenerator", "MillerRabinTester", "PrimeSearchError", "SearchAbandoned", "SearchBudget",
    "SearchRequest", "SearchResult", "TesterKind", "WeakFermatTester", "find_prime",
    "make_generator", "make_tester", "run_primality_test", "search", "search_many",
]
