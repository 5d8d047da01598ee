"""
API Dependencies

FastAPI dependency injection for the filter and results services.
"""

from typing import Annotated

from fastapi import Depends

from admission_filter.infrastructure.db.dependencies import SessionDep
from admission_filter.infrastructure.services import ResultsService, VirtualFilterService


def get_filter_service(session: SessionDep) -> VirtualFilterService:
    """Filter service bound to the request's database session."""
    return VirtualFilterService(session)


def get_results_service(session: SessionDep) -> ResultsService:
    """Results service bound to the request's database session."""
    return ResultsService(session)


FilterServiceDep = Annotated[VirtualFilterService, Depends(get_filter_service)]
ResultsServiceDep = Annotated[ResultsService, Depends(get_results_service)]
