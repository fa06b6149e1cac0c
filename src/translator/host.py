"""宿主聊天应用的协作接口."""

import re
from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, List

from models.models import ChatMessage

EventHandler = Callable[..., Awaitable[Any]]


class event_types:
    """宿主事件名称."""

    CHARACTER_MESSAGE_RENDERED = "character_message_rendered"
    USER_MESSAGE_RENDERED = "user_message_rendered"
    MESSAGE_SWIPED = "message_swiped"

    ALL = (CHARACTER_MESSAGE_RENDERED, USER_MESSAGE_RENDERED, MESSAGE_SWIPED)


class EventSource:
    """简单的异步事件总线, 处理函数按注册顺序依次 await."""

    def __init__(self):
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)

    def on(self, event: str, handler: EventHandler) -> None:
        self._handlers[event].append(handler)

    def off(self, event: str, handler: EventHandler) -> None:
        if handler in self._handlers.get(event, []):
            self._handlers[event].remove(handler)

    async def emit(self, event: str, *args: Any) -> None:
        for handler in list(self._handlers.get(event, [])):
            await handler(*args)


_USER_PATTERN = re.compile(r"\{\{user\}\}|<USER>", re.IGNORECASE)
_CHAR_PATTERN = re.compile(r"\{\{char\}\}|<BOT>", re.IGNORECASE)


def substitute_params(text: str, user_name: str, char_name: str) -> str:
    """替换 {{user}} / {{char}} 等宿主模板参数."""
    if not text:
        return text
    text = _USER_PATTERN.sub(lambda _: user_name or "", text)
    return _CHAR_PATTERN.sub(lambda _: char_name or "", text)


class ChatHost(ABC):
    """宿主提供的当前聊天及其持久化/重绘钩子."""

    @property
    @abstractmethod
    def chat(self) -> List[ChatMessage]:
        """按顺序排列的当前聊天消息."""

    @property
    @abstractmethod
    def user_name(self) -> str:
        """当前用户名, 用于 {{user}} 替换."""

    def substitute_params(self, text: str, user_name: str, char_name: str) -> str:
        return substitute_params(text, user_name, char_name)

    def add_message(self, message: ChatMessage) -> int:
        """追加消息, 返回其下标."""
        self.chat.append(message)
        return len(self.chat) - 1

    @abstractmethod
    async def save_chat(self) -> None:
        """保存当前聊天."""

    @abstractmethod
    async def reload_current_chat(self) -> None:
        """重新加载并重绘当前聊天."""

    @abstractmethod
    async def update_message_block(self, message_id: int, message: ChatMessage) -> None:
        """重绘单条消息."""
