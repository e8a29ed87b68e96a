"""Run the end-of-day balance snapshot once, outside the API's scheduler."""

import argparse
import asyncio
from datetime import date
from pathlib import Path
import sys

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.append(str(ROOT_DIR))

from app.core.database import AsyncSessionLocal, init_db  # noqa: E402
from app.core.logging_config import setup_logging  # noqa: E402
from app.services.eod_snapshot import EodSnapshotJob  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Snapshot every account's end-of-day balance")
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Snapshot date (YYYY-MM-DD); defaults to today",
    )
    return parser.parse_args()


async def run_snapshot(snapshot_date: date | None) -> int:
    await init_db()
    return await EodSnapshotJob(AsyncSessionLocal).run(snapshot_date)


if __name__ == "__main__":
    setup_logging()
    args = parse_args()
    written = asyncio.run(run_snapshot(args.date))
    print(f"{written} snapshots written")
