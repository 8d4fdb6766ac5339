"""Load user and company records from JSON files."""
from __future__ import annotations

import json
import logging
from collections import Counter
from pathlib import Path
from typing import Dict, List, Mapping, Tuple

from .models import Company, CompanyMap, User

logger = logging.getLogger("topups.loader")


class TopUpError(RuntimeError):
    """Base class for failures that halt a top-up run."""

    prefix = "ERROR: "


class SourceReadError(TopUpError):
    """Raised when a JSON source cannot be read or decoded."""

    prefix = ""

    def __init__(self, source: Path | str, cause: object) -> None:
        super().__init__(f"Error loading {source}: {cause}")
        self.source = source


class RecordMappingError(TopUpError):
    """Raised when a raw record cannot be turned into a user or company."""

    def __init__(self, kind: str, record: object, cause: object) -> None:
        super().__init__(f"Unable to load {kind} {record} - {cause}")
        self.kind = kind
        self.record = record


class DuplicateCompanyIdError(TopUpError):
    """Raised when two company records share the same id."""

    prefix = ""

    def __init__(self, company_id: int, *, first_name: str, second_name: str) -> None:
        super().__init__(
            f"Duplicate company id found: '{second_name}' and '{first_name}' "
            f"both have id {company_id}."
        )
        self.company_id = company_id
        self.first_name = first_name
        self.second_name = second_name


def load_json_data(path: Path | str) -> List[Mapping[str, object]]:
    """Read ``path`` and return its JSON array of objects."""

    try:
        with Path(path).open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, ValueError) as exc:
        raise SourceReadError(path, exc) from exc

    if not isinstance(data, list):
        raise SourceReadError(path, f"expected a JSON array, got {type(data).__name__}")
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise SourceReadError(path, f"item {index} is not a JSON object")

    logger.debug("Read %d records from %s", len(data), path)
    return data


def load_users(path: Path | str) -> Tuple[User, ...]:
    """Load every user record in ``path``, preserving input order."""

    users: List[User] = []
    for record in load_json_data(path):
        try:
            users.append(User.from_dict(record))
        except ValueError as exc:
            raise RecordMappingError("user", record, exc) from exc

    duplicates = sorted(user_id for user_id, count in Counter(u.id for u in users).items() if count > 1)
    if duplicates:
        logger.warning("Duplicate user ids in %s: %s", path, ", ".join(str(i) for i in duplicates))
    return tuple(users)


def load_companies(path: Path | str) -> CompanyMap:
    """Load company records from ``path`` keyed by company id."""

    companies: Dict[int, Company] = {}
    for record in load_json_data(path):
        try:
            company = Company.from_dict(record)
        except ValueError as exc:
            raise RecordMappingError("company", record, exc) from exc

        existing = companies.get(company.id)
        if existing is not None:
            raise DuplicateCompanyIdError(
                company.id,
                first_name=existing.name,
                second_name=company.name,
            )
        companies[company.id] = company
    return companies


__all__ = [
    "DuplicateCompanyIdError",
    "RecordMappingError",
    "SourceReadError",
    "TopUpError",
    "load_companies",
    "load_json_data",
    "load_users",
]
