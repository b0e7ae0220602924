"""Background removal of self-destructing messages.

The ExpiryReaper periodically purges every message whose ``hard_delete_at``
has passed. A message can stay readable for up to one interval past its
nominal expiry. Several server instances may run the reaper at once: the
purge is a delete-by-predicate and needs no coordination.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from securechat.core.settings import settings
from securechat.db.session import SessionLocal
from securechat.db.time import utcnow
from securechat.services.messages import MessageLifecycleStore

# Configure logger for this module
logger = logging.getLogger(__name__)

MIN_INTERVAL_SECONDS = 0.1


class ExpiryReaper:
    """Runs ``purge_expired`` on a fixed interval."""

    def __init__(
        self,
        session_factory: Callable[[], Session] | None = None,
        interval_seconds: float | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize the reaper.

        Args:
            session_factory: Creates a fresh session per run. Defaults to SessionLocal.
            interval_seconds: Seconds between runs. Defaults to the configured interval.
            clock: Source of the purge cutoff time.
        """
        self.session_factory = session_factory or SessionLocal
        self.interval_seconds = max(
            MIN_INTERVAL_SECONDS,
            float(settings.reaper_interval_seconds if interval_seconds is None else interval_seconds),
        )
        self.clock = clock
        self.total_purged = 0
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        """Start the background purge loop."""
        if not self.running:
            self._stopping.clear()
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the background purge loop."""
        if self._task is None:
            return

        self._stopping.set()
        await self._task
        self._task = None

    def purge(self) -> int:
        """Purge expired messages once using a fresh session."""
        with self.session_factory() as db:
            return MessageLifecycleStore(db, clock=self.clock).purge_expired(self.clock())

    async def run_once(self) -> int:
        """Purge in a worker thread and return the number of deleted rows."""
        deleted = await asyncio.to_thread(self.purge)
        self.total_purged += deleted
        return deleted

    async def _run(self) -> None:
        while not self._stopping.is_set():
            try:
                await self.run_once()
            except SQLAlchemyError as e:
                logger.error("ExpiryReaper encountered storage error: %s", e, exc_info=True)
            except (OSError, TimeoutError) as e:
                logger.warning("ExpiryReaper encountered I/O error: %s", e)
            except (ValueError, TypeError, KeyError, AttributeError, RuntimeError) as e:
                logger.error("ExpiryReaper encountered processing error: %s", e, exc_info=True)

            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval_seconds)
            except TimeoutError:
                continue
