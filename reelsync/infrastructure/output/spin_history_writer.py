# reelsync/infrastructure/output/spin_history_writer.py
import asyncio
import json
import logging
import os
from datetime import datetime
from typing import Dict, Any, List, Optional, Set

import aiofiles

from reelsync.domain.events.event_dispatcher import EventDispatcher
from reelsync.domain.events.spin_events import SpinEvent, SpinEventType


RECORDED_EVENTS = (
    SpinEventType.POPUP_REQUESTED,
    SpinEventType.LATE_OUTCOME_RECONCILED,
    SpinEventType.SESSION_RECOVERED,
)


class SpinHistoryWriter:
    """
    Appends one JSON line per revealed, reconciled or aborted spin.

    Event handlers only queue the record; writing happens on the event loop
    through aiofiles so the orchestrator never waits on disk.
    """
    def __init__(self, path: str):
        self.logger = logging.getLogger("infrastructure.output.history")
        self.path = path
        self.records_written = 0
        self._pending: List[Dict[str, Any]] = []
        self._tasks: Set[asyncio.Task] = set()
        self._lock: Optional[asyncio.Lock] = None  # bound to the running loop on first flush

    def attach(self, event_dispatcher: EventDispatcher):
        for event_type in RECORDED_EVENTS:
            event_dispatcher.register(event_type, self.on_event)

    def detach(self, event_dispatcher: EventDispatcher):
        for event_type in RECORDED_EVENTS:
            event_dispatcher.unregister(event_type, self.on_event)

    def on_event(self, event: SpinEvent):
        record = {
            "timestamp": event.timestamp.isoformat() if isinstance(event.timestamp, datetime) else None,
            "event": event.type.name,
        }
        record.update(event.data)
        self._pending.append(record)

        task = asyncio.get_running_loop().create_task(self.flush())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def flush(self) -> int:
        """
        Write queued records.

        Returns:
            Number of records written by this call
        """
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            if not self._pending:
                return 0
            records, self._pending = self._pending, []

            directory = os.path.dirname(self.path)
            if directory:
                os.makedirs(directory, exist_ok=True)

            async with aiofiles.open(self.path, mode="a", encoding="utf-8") as f:
                for record in records:
                    await f.write(json.dumps(record, ensure_ascii=False, default=str) + "\n")

            self.records_written += len(records)
            self.logger.debug(f"Wrote {len(records)} history records to {self.path}")
            return len(records)

    async def close(self):
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
        await self.flush()
        self._lock = None
