"""面向用户的提示消息."""

import logging
from typing import Optional

from api.sse_manager import SSEManager
from config.logging_config import get_logger
from models.models import NoticeLevel

logger = get_logger(__name__)

_LOG_LEVELS = {
    NoticeLevel.INFO: logging.INFO,
    NoticeLevel.SUCCESS: logging.INFO,
    NoticeLevel.WARNING: logging.WARNING,
    NoticeLevel.ERROR: logging.ERROR,
}


class Notifier:
    """记录提示并通过SSE推送给前端."""

    def __init__(self, sse_manager: Optional[SSEManager] = None):
        self.sse_manager = sse_manager

    async def notify(self, level: str, message: str) -> None:
        logger.log(_LOG_LEVELS.get(level, logging.INFO), f"[{level}] {message}")
        if self.sse_manager is not None:
            await self.sse_manager.send_notice(level, message)

    async def info(self, message: str) -> None:
        await self.notify(NoticeLevel.INFO, message)

    async def success(self, message: str) -> None:
        await self.notify(NoticeLevel.SUCCESS, message)

    async def warning(self, message: str) -> None:
        await self.notify(NoticeLevel.WARNING, message)

    async def error(self, message: str) -> None:
        await self.notify(NoticeLevel.ERROR, message)
