"""LLM Translate API 路由."""

import uuid
from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from .sse_manager import SSEManager
from config.logging_config import get_logger
from config.settings import settings
from models.models import (
    ChatMessage,
    ChatMessageCreate,
    ChatTranslationResult,
    ClearRequest,
    HostEvent,
    ProviderInfo,
    SettingsResponse,
    SettingsUpdate,
    TextPayload,
)
from translator.chat_store import JsonlChatHost
from translator.dispatcher import ProviderDispatcher
from translator.errors import (
    MissingCredentialError,
    TranslationError,
    UnsupportedProviderError,
)
from translator.host import EventSource, event_types
from translator.notifier import Notifier
from translator.orchestrator import TranslationOrchestrator
from translator.providers import PROVIDERS
from translator.secret_store import SecretStore
from translator.settings_store import SettingsStore

logger = get_logger(__name__)

# 创建路由实例
router = APIRouter(prefix="/api/v1/llm-translate")

# 创建SSE管理器和各服务实例
sse_manager = SSEManager()
event_source = EventSource()
secret_store = SecretStore.from_settings(settings)
settings_store = SettingsStore(settings.settings_file, settings.save_debounce_seconds)
settings_store.load()
chat_host = JsonlChatHost(settings.chat_file, sse_manager, settings.user_name)
chat_host.load()
orchestrator = TranslationOrchestrator(
    ProviderDispatcher.from_settings(settings, secret_store),
    settings_store,
    chat_host,
    Notifier(sse_manager),
)
orchestrator.bind_events(event_source)


def get_orchestrator() -> TranslationOrchestrator:
    return orchestrator


def get_event_source() -> EventSource:
    return event_source


def get_secret_store() -> SecretStore:
    return secret_store


def get_sse_manager() -> SSEManager:
    return sse_manager


def _http_error(e: Exception) -> HTTPException:
    """把翻译异常映射为HTTP错误."""
    if isinstance(e, (UnsupportedProviderError, MissingCredentialError, ValueError)):
        return HTTPException(status_code=400, detail=str(e))
    return HTTPException(status_code=502, detail=str(e))


def _settings_response(store: SettingsStore) -> SettingsResponse:
    return SettingsResponse(settings=store.settings, models=store.available_models())


@router.get("/providers", response_model=List[ProviderInfo])
async def list_providers():
    """返回所有供应商及其模型."""
    return [
        ProviderInfo(name=spec.name, display_name=spec.display_name, models=list(spec.models))
        for spec in PROVIDERS.values()
    ]


@router.get("/settings", response_model=SettingsResponse)
async def get_settings(orch: TranslationOrchestrator = Depends(get_orchestrator)):
    return _settings_response(orch.settings_store)


@router.patch("/settings", response_model=SettingsResponse)
async def update_settings(
    update: SettingsUpdate, orch: TranslationOrchestrator = Depends(get_orchestrator)
):
    """修改设置, 切换供应商时重新选择模型."""
    try:
        orch.settings_store.update(**update.model_dump())
    except (UnsupportedProviderError, ValueError) as e:
        raise _http_error(e)
    return _settings_response(orch.settings_store)


@router.get("/secrets", response_model=Dict[str, bool])
async def get_secret_state(store: SecretStore = Depends(get_secret_store)):
    """各供应商是否已配置密钥."""
    return store.secret_state()


@router.post("/translate", response_model=TextPayload)
async def translate_text(
    payload: TextPayload, orch: TranslationOrchestrator = Depends(get_orchestrator)
):
    """翻译任意文本, 供宿主其他功能调用."""
    try:
        return TextPayload(text=await orch.translate(payload.text))
    except (TranslationError, ValueError) as e:
        logger.error(f"翻译失败: {e}")
        raise _http_error(e)


@router.get("/chat", response_model=List[ChatMessage])
async def get_chat(orch: TranslationOrchestrator = Depends(get_orchestrator)):
    return orch.host.chat


@router.post("/chat/messages")
async def add_chat_message(
    payload: ChatMessageCreate,
    orch: TranslationOrchestrator = Depends(get_orchestrator),
    events: EventSource = Depends(get_event_source),
):
    """追加一条消息并触发渲染事件."""
    message_id = orch.host.add_message(ChatMessage(**payload.model_dump()))
    event = (
        event_types.USER_MESSAGE_RENDERED
        if payload.is_user
        else event_types.CHARACTER_MESSAGE_RENDERED
    )
    await events.emit(event, message_id)
    await orch.host.save_chat()
    return {"message_id": message_id, "message": orch.host.chat[message_id]}


@router.post("/chat/events")
async def receive_host_event(
    event: HostEvent,
    orch: TranslationOrchestrator = Depends(get_orchestrator),
    events: EventSource = Depends(get_event_source),
):
    """宿主事件入口, 例如消息渲染或切换."""
    if event.type not in event_types.ALL:
        raise HTTPException(status_code=400, detail=f"Unknown event type: {event.type}")
    if not 0 <= event.message_id < len(orch.host.chat):
        raise HTTPException(status_code=404, detail="Message not found")
    await events.emit(event.type, event.message_id)
    return {"message_id": event.message_id, "message": orch.host.chat[event.message_id]}


@router.post("/chat/translate", response_model=ChatTranslationResult)
async def translate_chat(
    orch: TranslationOrchestrator = Depends(get_orchestrator),
    sse: SSEManager = Depends(get_sse_manager),
):
    """按顺序翻译整段聊天, 进度通过 /events 推送."""

    async def progress_callback(progress: float, message: str):
        await sse.send_progress(progress, message)

    return await orch.translate_all(progress_callback)


@router.post("/chat/input", response_model=TextPayload)
async def translate_compose_box(
    payload: TextPayload, orch: TranslationOrchestrator = Depends(get_orchestrator)
):
    """翻译输入框内容并返回, 由前端替换输入框文本."""
    try:
        translated = await orch.translate_input(payload.text)
    except (TranslationError, ValueError) as e:
        raise _http_error(e)
    if translated is None:
        raise HTTPException(status_code=400, detail="Nothing to translate")
    return TextPayload(text=translated)


@router.post("/chat/clear")
async def clear_translations(
    payload: ClearRequest, orch: TranslationOrchestrator = Depends(get_orchestrator)
):
    """删除所有译文, 需要 confirm=true."""
    if not payload.confirm:
        raise HTTPException(status_code=409, detail="Clearing translations requires confirmation")
    cleared = await orch.clear_translations(payload.confirm)
    return {"cleared": cleared}


@router.get("/events")
async def stream_events(sse: SSEManager = Depends(get_sse_manager)):
    """
    订阅提示和重绘事件.

    SSE消息格式：
       - 提示消息：data: {"type": "notice", "level": "error", "message": "翻译失败。"}
       - 进度消息：data: {"type": "progress", "progress": 50, "message": "已完成 5/10 条消息"}
       - 重绘消息：data: {"type": "message_updated", "message_id": 3, "text": "..."}
       - 重新加载：data: {"type": "chat_reloaded", "length": 10}
    """
    client_id = str(uuid.uuid4())
    return StreamingResponse(
        sse.stream_messages(client_id), media_type="text/event-stream"
    )
