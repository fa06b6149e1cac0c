"""基于 JSONL 文件的宿主聊天实现.

文件第一行是聊天元数据(user_name, character_name 等), 之后每行一条消息。
"""

import json
import os
from typing import Any, Dict, List, Optional

from api.sse_manager import SSEManager
from config.logging_config import get_logger
from models.models import ChatMessage
from translator.host import ChatHost

logger = get_logger(__name__)


class JsonlChatHost(ChatHost):
    """从 JSONL 文件读写当前聊天, 重绘事件通过SSE推送."""

    def __init__(
        self,
        path: str,
        sse_manager: Optional[SSEManager] = None,
        default_user_name: str = "User",
    ):
        self.path = path
        self.sse_manager = sse_manager
        self.default_user_name = default_user_name
        self.metadata: Dict[str, Any] = {}
        self._chat: List[ChatMessage] = []

    @property
    def chat(self) -> List[ChatMessage]:
        return self._chat

    @property
    def user_name(self) -> str:
        return self.metadata.get("user_name") or self.default_user_name

    def load(self) -> List[ChatMessage]:
        """读取聊天文件, 文件不存在时为空聊天."""
        self.metadata = {}
        self._chat = []
        if not os.path.exists(self.path):
            return self._chat
        with open(self.path, "r", encoding="utf-8") as f:
            lines = [line for line in f if line.strip()]
        for i, line in enumerate(lines):
            record = json.loads(line)
            # 没有 mes 字段的首行是元数据
            if i == 0 and "mes" not in record:
                self.metadata = record
                continue
            self._chat.append(ChatMessage.model_validate(record))
        logger.info(f"Loaded {len(self._chat)} messages from {self.path}")
        return self._chat

    async def save_chat(self) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        # 写临时文件后原子替换
        tmp_path = f"{self.path}.tmp"
        try:
            with open(tmp_path, "w", encoding="utf-8") as f:
                f.write(json.dumps(self.metadata, ensure_ascii=False) + "\n")
                for message in self._chat:
                    f.write(json.dumps(message.model_dump(), ensure_ascii=False) + "\n")
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
        logger.info(f"Saved {len(self._chat)} messages to {self.path}")

    async def reload_current_chat(self) -> None:
        self.load()
        if self.sse_manager is not None:
            await self.sse_manager.send_chat_reloaded(len(self._chat))

    async def update_message_block(self, message_id: int, message: ChatMessage) -> None:
        if self.sse_manager is not None:
            await self.sse_manager.send_message_updated(
                message_id, message.display_text or message.mes
            )
