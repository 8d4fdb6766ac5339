"""Render the per-company top-up summary report."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, List, Optional

from .loader import TopUpError
from .models import Company, CompanyMap, User

logger = logging.getLogger("topups.report")


class ReportWriteError(TopUpError):
    """Raised when the rendered report cannot be written."""

    prefix = ""


def summarize_user(user: User) -> str:
    return (
        f"\n\t\t{user.last_name}, {user.first_name}, {user.email}"
        f"\n\t\t  Previous Token Balance, {user.starting_tokens}"
        f"\n\t\t  New Token Balance {user.current_token_balance}"
    )


def _summarize_users(users: Iterable[User]) -> str:
    return "".join(summarize_user(user) for user in users)


def summarize_company(company: Company) -> Optional[str]:
    """Return the report section for ``company``, or ``None`` when it has no users."""

    if not company.users:
        return None
    return (
        f"\n\tCompany Id: {company.id}"
        f"\n\tCompany Name: {company.name}"
        "\n\tUsers Emailed:"
        + _summarize_users(company.emailed_users())
        + "\n\tUsers Not Emailed:"
        + _summarize_users(company.not_emailed_users())
        + f"\n\t\tTotal amount of top ups for {company.name}: {company.total_top_ups}"
        + "\n"
    )


def render(companies: CompanyMap) -> str:
    """Render the report for every company that has topped-up users.

    Companies appear in ascending id order and the report always ends with a
    single blank line.
    """

    sections: List[str] = []
    for company_id in sorted(companies):
        section = summarize_company(companies[company_id])
        if section is not None:
            sections.append(section)
    sections.append("\n")
    return "".join(sections)


def write_report(path: Path | str, companies: CompanyMap) -> Path:
    """Render the report and write it to ``path``."""

    text = render(companies)
    destination = Path(path)
    try:
        data = text.encode("utf-8")
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(data)
    except (OSError, UnicodeError) as exc:
        raise ReportWriteError(f"Error writing {destination}: {exc}") from exc
    logger.info("Report written to %s", destination)
    return destination


def matches_reference(output: Path | str, reference: Path | str) -> bool:
    """Return ``True`` when ``output`` is byte-for-byte identical to ``reference``."""

    if not Path(reference).is_file():
        logger.warning("Reference file %s does not exist", reference)
        return False
    return Path(output).read_bytes() == Path(reference).read_bytes()


__all__ = [
    "ReportWriteError",
    "matches_reference",
    "render",
    "summarize_company",
    "summarize_user",
    "write_report",
]
