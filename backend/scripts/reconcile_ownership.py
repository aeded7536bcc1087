#!/usr/bin/env python3
"""
Repair pass for half-applied ownership transfers.

Walks every video, makes owner_id follow the ownership history and puts each
video in exactly its owner's library. Safe to run at any time.

Run: python scripts/reconcile_ownership.py
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from video_exchange.infrastructure.db.database import close_db, get_session_context
from video_exchange.infrastructure.services.ownership_transfer import OwnershipReconciler


async def main() -> None:
    async with get_session_context() as session:
        report = await OwnershipReconciler(session).reconcile()
    await close_db()

    print(f"Videos checked:          {report.videos_checked}")
    print(f"Owners repaired:         {report.owners_repaired}")
    print(f"Histories started:       {report.histories_started}")
    print(f"Library entries added:   {report.library_entries_added}")
    print(f"Library entries removed: {report.library_entries_removed}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    asyncio.run(main())
