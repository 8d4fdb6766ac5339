"""Token top-up report generation for users grouped by company."""

from __future__ import annotations

from .config import ConfigError, ReportConfig, build_config
from .engine import TopUpResult, process
from .loader import (
    DuplicateCompanyIdError,
    RecordMappingError,
    SourceReadError,
    TopUpError,
    load_companies,
    load_users,
)
from .models import Company, User
from .report import render, write_report

__all__ = [
    "Company",
    "ConfigError",
    "DuplicateCompanyIdError",
    "RecordMappingError",
    "ReportConfig",
    "SourceReadError",
    "TopUpError",
    "TopUpResult",
    "User",
    "build_config",
    "load_companies",
    "load_users",
    "process",
    "render",
    "write_report",
]
