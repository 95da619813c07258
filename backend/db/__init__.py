"""Database package."""

from backend.db.base import Base, get_engine, get_session_factory, init_db
from backend.db.stores import (
    CompanyFilters,
    CompanyStore,
    DuplicateCompanyError,
    InvalidStatusError,
    JobStore,
    ProfileStore,
)
from backend.db.tables import CompanyRow, SearchJobRow, UserProfileRow

__all__ = [
    "Base",
    "get_engine",
    "get_session_factory",
    "init_db",
    "CompanyFilters",
    "CompanyStore",
    "DuplicateCompanyError",
    "InvalidStatusError",
    "JobStore",
    "ProfileStore",
    "CompanyRow",
    "SearchJobRow",
    "UserProfileRow",
]
