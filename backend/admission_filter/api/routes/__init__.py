# API Routes Module
from admission_filter.api.routes import (
    virtual_filter,
    results,
)

__all__ = [
    "virtual_filter",
    "results",
]
