"""Domain models for users, companies and their token top-ups."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Dict, Mapping, Tuple

_INTEGER_PATTERN = re.compile(r"([+-]?\d+)(?:\.\d*)?")
_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


def _check_fields(data: Mapping[str, object], fields: Tuple[str, ...]) -> None:
    missing = set(fields) - data.keys()
    if missing:
        raise ValueError(f"missing required fields: {', '.join(sorted(missing))}")
    unknown = data.keys() - set(fields)
    if unknown:
        raise ValueError(f"unknown fields: {', '.join(sorted(str(key) for key in unknown))}")


def _coerce_int(name: str, value: object) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    if isinstance(value, str):
        match = _INTEGER_PATTERN.fullmatch(value.strip())
        if match:
            return int(match.group(1))
    raise ValueError(f"{name} must be an integer, got {value!r}")


def _coerce_bool(name: str, value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    raise ValueError(f"{name} must be a boolean, got {value!r}")


def _coerce_str(name: str, value: object) -> str:
    if value is None or isinstance(value, (dict, list)):
        raise ValueError(f"{name} must be a string, got {value!r}")
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class User:
    """A user and the token balance granted to them.

    The balance is kept as ``starting_tokens`` plus an accumulated ``top_up``
    so repeated top-ups never lose track of the original amount.
    """

    id: int
    first_name: str
    last_name: str
    email: str
    company_id: int
    email_status: bool
    active_status: bool
    starting_tokens: int
    top_up: int = 0
    email_sent: bool = False

    FIELDS = (
        "id",
        "first_name",
        "last_name",
        "email",
        "company_id",
        "email_status",
        "active_status",
        "tokens",
    )

    @property
    def current_token_balance(self) -> int:
        return self.starting_tokens + self.top_up

    @staticmethod
    def from_dict(data: Mapping[str, object]) -> "User":
        """Create a :class:`User` from a raw JSON record."""
        _check_fields(data, User.FIELDS)
        return User(
            id=_coerce_int("id", data["id"]),
            first_name=_coerce_str("first_name", data["first_name"]),
            last_name=_coerce_str("last_name", data["last_name"]),
            email=_coerce_str("email", data["email"]),
            company_id=_coerce_int("company_id", data["company_id"]),
            email_status=_coerce_bool("email_status", data["email_status"]),
            active_status=_coerce_bool("active_status", data["active_status"]),
            starting_tokens=_coerce_int("tokens", data["tokens"]),
        )


@dataclass(frozen=True)
class Company:
    """A company, its top-up policy and the users it has topped up."""

    id: int
    name: str
    top_up: int
    email_status: bool
    users: Tuple[User, ...] = ()

    FIELDS = ("id", "name", "top_up", "email_status")

    @property
    def total_top_ups(self) -> int:
        return sum(user.top_up for user in self.users)

    def emailed_users(self) -> Tuple[User, ...]:
        return _by_last_name(user for user in self.users if user.email_sent)

    def not_emailed_users(self) -> Tuple[User, ...]:
        return _by_last_name(user for user in self.users if not user.email_sent)

    @staticmethod
    def from_dict(data: Mapping[str, object]) -> "Company":
        """Create a :class:`Company` with no users from a raw JSON record."""
        _check_fields(data, Company.FIELDS)
        return Company(
            id=_coerce_int("id", data["id"]),
            name=_coerce_str("name", data["name"]),
            top_up=_coerce_int("top_up", data["top_up"]),
            email_status=_coerce_bool("email_status", data["email_status"]),
        )


def _by_last_name(users) -> Tuple[User, ...]:
    return tuple(sorted(users, key=lambda user: user.last_name))


CompanyMap = Dict[int, Company]


__all__ = ["Company", "CompanyMap", "User"]
