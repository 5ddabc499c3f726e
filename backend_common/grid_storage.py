"""
Read-only JSON snapshot collaborators: the grid store and the district rent table.

Snapshot layout::

    {
      "stores":  {"<cell id>": {"store_counts": {...}, "closure_count": 3, ...}},
      "traffic": {"<cell id>": {"traffic_index": 61.5, "time_morning": 30, ...}}
    }

Rent table layout: ``{"<district name>": <average rent>}``.
"""

import asyncio
import json
import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Sequence

import aiofiles
from pydantic import ValidationError

from all_types.internal_types import GridStoreRecord, GridTrafficRecord
from risk_errors import UpstreamUnavailable

logger = logging.getLogger(__name__)


class FileLock:
    def __init__(self):
        self.locks = {}

    @asynccontextmanager
    async def acquire(self, filename):
        if filename not in self.locks:
            self.locks[filename] = asyncio.Lock()
        async with self.locks[filename]:
            yield


file_lock_manager = FileLock()


async def read_json(file_path: str) -> Optional[Any]:
    """Reads a JSON file. A missing file returns None."""
    async with file_lock_manager.acquire(file_path):
        try:
            if os.path.exists(file_path):
                async with aiofiles.open(file_path, mode="r", encoding="utf-8") as file:
                    content = await file.read()
                    return json.loads(content)
            return None
        except json.JSONDecodeError as e:
            raise UpstreamUnavailable(file_path, f"error parsing data file: {e}")
        except IOError as e:
            raise UpstreamUnavailable(file_path, f"error reading data file: {e}")


class JsonGridStore:
    """Grid store backed by a snapshot file, loaded once and kept in memory."""

    def __init__(self, snapshot_path: str):
        self.snapshot_path = snapshot_path
        self._snapshot: Optional[Dict[str, Dict[str, dict]]] = None
        self._load_lock = asyncio.Lock()

    async def _load(self) -> Dict[str, Dict[str, dict]]:
        if self._snapshot is not None:
            return self._snapshot
        async with self._load_lock:
            if self._snapshot is None:
                content = await read_json(self.snapshot_path)
                if content is None:
                    raise UpstreamUnavailable("grid store", f"snapshot not found at {self.snapshot_path}")
                self._snapshot = {
                    "stores": content.get("stores", {}),
                    "traffic": content.get("traffic", {}),
                }
                logger.info(
                    f"Loaded grid snapshot with {len(self._snapshot['stores'])} store cells "
                    f"and {len(self._snapshot['traffic'])} traffic cells"
                )
        return self._snapshot

    @staticmethod
    def _records(table: Dict[str, dict], cell_ids: Sequence[str], model) -> list:
        records = []
        for cell_id in cell_ids:
            raw = table.get(cell_id)
            if raw is None:
                continue
            try:
                records.append(model(cell_id=cell_id, **raw))
            except ValidationError as e:
                logger.warning(f"Skipping malformed grid record for {cell_id}: {e}")
        return records

    async def fetch_store_records(self, cell_ids: Sequence[str]) -> List[GridStoreRecord]:
        snapshot = await self._load()
        return self._records(snapshot["stores"], cell_ids, GridStoreRecord)

    async def fetch_traffic_records(self, cell_ids: Sequence[str]) -> List[GridTrafficRecord]:
        snapshot = await self._load()
        return self._records(snapshot["traffic"], cell_ids, GridTrafficRecord)


class JsonRentTable:
    """District rent lookup; matching ignores case and accepts partial names."""

    def __init__(self, table_path: str):
        self.table_path = table_path
        self._table: Optional[Dict[str, float]] = None

    async def _load(self) -> Dict[str, float]:
        if self._table is None:
            content = await read_json(self.table_path)
            if content is None:
                raise UpstreamUnavailable("rent table", f"table not found at {self.table_path}")
            self._table = {str(k).casefold(): float(v) for k, v in content.items()}
        return self._table

    async def average_rent(self, district: str) -> Optional[float]:
        if not district:
            return None
        table = await self._load()
        wanted = district.strip().casefold()
        if wanted in table:
            return table[wanted]

        # Longest matching name wins
        matches = [name for name in table if name in wanted or wanted in name]
        if not matches:
            return None
        return table[max(matches, key=lambda name: (len(name), name))]
