#!/usr/bin/env python3
"""Compliance expiry sweep — expire overdue documents and send expiry reminders.

Intended to run once a day from cron. Safe to re-run: reminders already sent
for a threshold are not repeated.

Usage:
    python -m scripts.compliance_sweep                     # as of today
    python -m scripts.compliance_sweep --date 2026-03-01   # as of a given day
    python -m scripts.compliance_sweep --dry-run           # report, then roll back

Requires in .env (project root):
    DATABASE_URL, AUTH_JWT_SECRET
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date
from pathlib import Path

from dotenv import load_dotenv

# ── Path setup ────────────────────────────────────────────────────────
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

env_path = PROJECT_ROOT / ".env"
if env_path.exists():
    load_dotenv(env_path)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("compliance_sweep")


async def run(as_of: date, dry_run: bool) -> dict[str, int]:
    from locumhub.compliance.service import ComplianceService
    from locumhub.database import async_session_factory, engine

    try:
        async with async_session_factory() as session:
            counts = await ComplianceService.run_expiry_sweep(session, today=as_of)
            if dry_run:
                await session.rollback()
                logger.info("Dry run — changes rolled back")
            else:
                await session.commit()
        return counts
    finally:
        await engine.dispose()


def main():
    parser = argparse.ArgumentParser(
        description="Compliance expiry sweep — expire documents, send reminders",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                      # sweep as of today
  %(prog)s --date 2026-03-01    # sweep as of a specific day
  %(prog)s --dry-run            # compute without committing
        """,
    )
    parser.add_argument("--date", dest="as_of", type=date.fromisoformat,
                        default=None, help="Sweep date (YYYY-MM-DD, default: today)")
    parser.add_argument("--dry-run", action="store_true",
                        help="Run the sweep but roll back instead of committing")
    args = parser.parse_args()

    as_of = args.as_of or date.today()
    counts = asyncio.run(run(as_of, args.dry_run))

    print(f"""
{'=' * 60}
  COMPLIANCE SWEEP — {as_of.isoformat()}
  Documents expired : {counts['expired']}
  Reminders sent    : {counts['reminders_sent']}
  DBS checks expired: {counts['dbs_expired']}
{'=' * 60}
""")
    return 0


if __name__ == "__main__":
    sys.exit(main())
