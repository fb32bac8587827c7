"""Best-effort "record changed" broadcast. Outside the consistency boundary; never raises."""

import asyncio
import logging
from typing import Any, Dict, Iterable, Optional, Protocol, Set

RECORD_CHANGED = "record_changed"

# Strong references to in-flight notifications; the event loop only keeps weak ones.
_background_tasks: Set["asyncio.Task[bool]"] = set()


class BroadcastChannel(Protocol):
    """Real-time channel that subscribers listen on. At-most-once delivery is acceptable."""

    async def broadcast(self, message: Dict[str, Any]) -> None:
        ...


class ChangeNotifier:
    """
    Fire-and-forget: publish failures and timeouts are logged, never retried
    and never roll back an amendment that has already committed.
    """

    def __init__(
        self,
        channel: BroadcastChannel,
        logger: logging.Logger,
        timeout_seconds: float = 2.0,
    ) -> None:
        self._channel = channel
        self._logger = logger
        self._timeout = timeout_seconds
        self._pending: Set["asyncio.Task[bool]"] = set()

    async def publish(
        self,
        record_id: str,
        *,
        revision_number: Optional[int] = None,
        fields: Iterable[str] = (),
        correlation_id: Optional[str] = None,
    ) -> bool:
        """Returns True if the channel accepted the message."""
        message = {
            "type": RECORD_CHANGED,
            "record_id": record_id,
            "revision_number": revision_number,
            "fields": sorted(fields),
            "correlation_id": correlation_id,
        }
        try:
            await asyncio.wait_for(self._channel.broadcast(message), timeout=self._timeout)
        except Exception as e:
            self._logger.error(
                "record_change_notification_failed",
                extra={
                    "record_id": record_id,
                    "correlation_id": correlation_id,
                    "error": str(e) or type(e).__name__,
                },
            )
            return False
        self._logger.info(
            "record_change_published",
            extra={"record_id": record_id, "correlation_id": correlation_id},
        )
        return True

    def schedule(
        self,
        record_id: str,
        *,
        revision_number: Optional[int] = None,
        fields: Iterable[str] = (),
        correlation_id: Optional[str] = None,
    ) -> "asyncio.Task[bool]":
        """Run publish() in the background. The task is referenced until it finishes."""
        task = asyncio.create_task(
            self.publish(
                record_id,
                revision_number=revision_number,
                fields=list(fields),
                correlation_id=correlation_id,
            )
        )
        _background_tasks.add(task)
        self._pending.add(task)
        task.add_done_callback(self._forget)
        return task

    async def drain(self) -> None:
        """Wait for notifications scheduled by this notifier. Used on shutdown and in tests."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def _forget(self, task: "asyncio.Task[bool]") -> None:
        _background_tasks.discard(task)
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self._logger.error(
                "record_change_notification_failed",
                extra={"error": str(task.exception()) or type(task.exception()).__name__},
            )
