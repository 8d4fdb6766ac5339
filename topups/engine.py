"""Apply company top-up policy to users."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .models import CompanyMap, User

logger = logging.getLogger("topups.engine")


@dataclass(frozen=True)
class TopUpResult:
    """Users and companies after a top-up pass."""

    users: Tuple[User, ...]
    companies: CompanyMap
    eligible_count: int = 0

    @property
    def skipped_count(self) -> int:
        return len(self.users) - self.eligible_count


def process(
    users: Sequence[User],
    companies: CompanyMap,
    *,
    on_user: Optional[Callable[[User], None]] = None,
) -> TopUpResult:
    """Top up active users that belong to a known company.

    Inactive users and users whose ``company_id`` matches no company are
    returned unchanged and assigned nowhere. Eligible users receive the
    company's ``top_up`` on top of any existing one, and ``email_sent`` is set
    only when both the company and the user allow email. Neither argument is
    modified; new values are returned instead.
    """

    assigned: Dict[int, List[User]] = {company_id: [] for company_id in companies}
    updated: List[User] = []
    eligible = 0

    for user in users:
        if on_user is not None:
            on_user(user)

        company = companies.get(user.company_id)
        if not user.active_status or company is None:
            updated.append(user)
            continue

        topped_up = replace(
            user,
            top_up=user.top_up + company.top_up,
            email_sent=company.email_status and user.email_status,
        )
        assigned[user.company_id].append(topped_up)
        eligible += 1
        updated.append(topped_up)

    result = TopUpResult(
        users=tuple(updated),
        companies={
            company_id: replace(company, users=company.users + tuple(assigned[company_id]))
            for company_id, company in companies.items()
        },
        eligible_count=eligible,
    )
    logger.info(
        "Topped up %d of %d users (%d skipped)",
        result.eligible_count,
        len(result.users),
        result.skipped_count,
    )
    return result


__all__ = ["TopUpResult", "process"]
