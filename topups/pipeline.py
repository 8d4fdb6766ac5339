"""Run the load, top-up and report steps in order."""
from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, TextIO

from . import engine, report
from .config import ReportConfig
from .loader import load_companies, load_users
from .models import User

logger = logging.getLogger("topups.pipeline")


@dataclass(frozen=True)
class RunSummary:
    """Outcome of a completed run."""

    user_count: int
    company_count: int
    eligible_count: int
    output_path: Path
    verified: Optional[bool] = None


def run(config: ReportConfig, *, out: TextIO | None = None) -> RunSummary:
    """Produce the top-up report described by ``config``.

    Status lines go to ``out`` (standard output by default). Any
    :class:`~topups.loader.TopUpError` is propagated to the caller before the
    output file is touched.
    """

    out = sys.stdout if out is None else out

    users = load_users(config.users_path)
    print(f"Users: {len(users)}", file=out)

    companies = load_companies(config.companies_path)
    print(f"Companies: {len(companies)}", file=out)

    def _progress(_user: User) -> None:
        out.write(".")
        out.flush()

    result = engine.process(
        users,
        companies,
        on_user=_progress if config.show_progress else None,
    )

    output_path = report.write_report(config.output_path, result.companies)
    print(f"\nDone processing. Results in {output_path}", file=out)

    verified: Optional[bool] = None
    if config.verify and config.reference_path is not None:
        verified = report.matches_reference(output_path, config.reference_path)
        print("Output passed verification" if verified else "Output failed verification", file=out)
        if not verified:
            logger.debug("Output %s differs from %s", output_path, config.reference_path)

    return RunSummary(
        user_count=len(users),
        company_count=len(companies),
        eligible_count=result.eligible_count,
        output_path=output_path,
        verified=verified,
    )


__all__ = ["RunSummary", "run"]
