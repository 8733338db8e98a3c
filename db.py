# db.py
"""
Shared plumbing for the in-memory stores: seed loading, id allocation and
the artificial latency that stands in for a network round trip.
"""
import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from settings import settings

# --- Configuration & Setup ---
logger = logging.getLogger(__name__)


async def simulate_latency(ms: int) -> None:
    """Suspends the calling operation for ``ms`` milliseconds, scaled by LATENCY_SCALE."""
    seconds = ms / 1000 * settings.LATENCY_SCALE
    if seconds > 0:
        await asyncio.sleep(seconds)


def next_id(records: Iterable[Any]) -> int:
    """Max existing id + 1, or 1 for an empty collection."""
    return max((record.id for record in records), default=0) + 1


def load_seed(name: str, seed_dir: Optional[Path] = None) -> List[Dict[str, Any]]:
    """Reads ``<seed_dir>/<name>.json``; a missing file yields an empty collection."""
    path = Path(seed_dir or settings.SEED_DATA_DIR) / f"{name}.json"
    if not path.exists():
        logger.warning(f"Seed file {path} not found, '{name}' starts empty.")
        return []

    with path.open("r", encoding="utf-8") as f:
        records = json.load(f)

    logger.info(f"Loaded {len(records)} '{name}' records from {path}.")
    return records
