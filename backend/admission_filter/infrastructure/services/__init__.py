"""
Application services for the Admission Filter backend.
"""

from admission_filter.infrastructure.services.filter_service import (
    VirtualFilterService,
    build_engine,
)
from admission_filter.infrastructure.services.results_service import (
    PublicResult,
    ResultsService,
    SessionResults,
)
from admission_filter.infrastructure.services.run_state import (
    OutcomeStore,
    RunRegistry,
    outcome_store,
    run_registry,
)


__all__ = [
    "VirtualFilterService",
    "build_engine",
    "ResultsService",
    "SessionResults",
    "PublicResult",
    "RunRegistry",
    "OutcomeStore",
    "run_registry",
    "outcome_store",
]
