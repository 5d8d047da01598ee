#!/usr/bin/env python3
"""
Run Virtual Filter Script

Runs the virtual filter for one admission session outside the API and
prints the summary. Results are committed like an API-triggered run.

Usage:
    python -m scripts.run_virtual_filter <session_id> [--dry-run]
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from uuid import UUID

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from admission_filter.config.settings import settings
from admission_filter.infrastructure.db.database import close_db, get_session_context, init_db
from admission_filter.infrastructure.services.filter_service import VirtualFilterService, build_engine

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


async def main(session_id: UUID, dry_run: bool) -> int:
    await init_db()
    try:
        async with get_session_context() as session:
            service = VirtualFilterService(session)
            if dry_run:
                snapshot = await service.load_snapshot(session_id)
                outcome = await asyncio.to_thread(build_engine(settings).run, snapshot)
                await session.rollback()
            else:
                outcome = await service.run(session_id)
    finally:
        await close_db()

    print(f"Session {outcome.session_id}: {outcome.admitted_count}/{outcome.total_candidates} "
          f"candidates admitted after {outcome.rounds} rounds ({outcome.execution_time_ms}ms)")
    for warning in outcome.warnings:
        print(f"  WARNING [{warning.code}] {warning.message}")
    if dry_run:
        print("Dry run: nothing was written.")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run the virtual filter for a session")
    parser.add_argument("session_id", type=UUID)
    parser.add_argument("--dry-run", action="store_true", help="Compute without writing results")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.session_id, args.dry_run)))
