from .query import (
    AthenaQueryRunner,
    QueryExecutionError,
    QueryTimeoutError,
    check_cross_account_access,
)

__all__ = [
    "AthenaQueryRunner",
    "QueryExecutionError",
    "QueryTimeoutError",
    "check_cross_account_access",
]
