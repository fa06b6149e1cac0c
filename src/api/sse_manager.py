"""SSE管理器，用于向前端推送提示和消息重绘事件."""

import json
import asyncio
from typing import AsyncGenerator, Dict, Any
from models.models import EventMessageType


class SSEManager:
    """SSE管理器类."""

    def __init__(self):
        self.clients: Dict[str, asyncio.Queue] = {}  # 存储客户端连接

    async def send_notice(self, level: str, message: str) -> None:
        """发送提示消息(对应前端的 toast)."""
        await self.broadcast(
            {"type": EventMessageType.NOTICE, "level": level, "message": message}
        )

    async def send_progress(self, progress: float, message: str) -> None:
        """发送进度更新."""
        await self.broadcast(
            {
                "type": EventMessageType.PROGRESS,
                "progress": progress,
                "message": message,
            }
        )

    async def send_message_updated(self, message_id: int, text: str) -> None:
        """通知前端重绘单条消息."""
        await self.broadcast(
            {
                "type": EventMessageType.MESSAGE_UPDATED,
                "message_id": message_id,
                "text": text,
            }
        )

    async def send_chat_reloaded(self, length: int) -> None:
        """通知前端重新加载整段聊天."""
        await self.broadcast({"type": EventMessageType.CHAT_RELOADED, "length": length})

    async def broadcast(self, message_data: Dict[str, Any]) -> None:
        """向所有已连接客户端发送SSE消息."""
        message = f"data: {json.dumps(message_data, ensure_ascii=False)}\n\n"
        for queue in list(self.clients.values()):
            await queue.put(message)

    async def register_client(self, client_id: str) -> asyncio.Queue:
        """注册客户端连接."""
        queue = asyncio.Queue()
        self.clients[client_id] = queue
        return queue

    async def unregister_client(self, client_id: str) -> None:
        """注销客户端连接."""
        if client_id in self.clients:
            del self.clients[client_id]

    async def stream_messages(self, client_id: str) -> AsyncGenerator[str, None]:
        """流式传输消息."""
        queue = await self.register_client(client_id)
        try:
            while True:
                message = await queue.get()
                yield message
                queue.task_done()
        finally:
            await self.unregister_client(client_id)
