"""BroadcastChannel that only logs. Used when no real-time backend is configured."""

import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)


class LoggingBroadcastChannel:
    async def broadcast(self, message: Dict[str, Any]) -> None:
        logger.info("record_change_broadcast_skipped", extra={"record_id": message.get("record_id")})
