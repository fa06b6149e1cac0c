"""API数据模型定义."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_PROVIDER = "openai"
DEFAULT_PROMPT = "Please translate the following text:"

# 译文存放在 message.extra 中的键名
DISPLAY_TEXT_KEY = "display_text"


class TranslationSettings(BaseModel):
    """翻译设置, 持久化时使用 llm_provider / llm_model / llm_prompt / auto_mode 键名."""

    provider: str = Field(default=DEFAULT_PROVIDER, alias="llm_provider")
    model: str = Field(default="", alias="llm_model")
    prompt_template: str = Field(default=DEFAULT_PROMPT, alias="llm_prompt")
    # 保留字段, 目前没有任何翻译流程读取它
    auto_mode: bool = Field(default=False, alias="auto_mode")

    class Config:
        """Pydantic配置."""

        populate_by_name = True

    @field_validator("prompt_template", mode="before")
    @classmethod
    def _default_blank_prompt(cls, value: Any) -> str:
        if value is None or not str(value).strip():
            return DEFAULT_PROMPT
        return str(value)

    @field_validator("model", mode="before")
    @classmethod
    def _none_model(cls, value: Any) -> str:
        return "" if value is None else str(value)


class ChatMessage(BaseModel):
    """宿主聊天记录中的一条消息, 未知字段原样保留."""

    name: str = ""
    is_user: bool = False
    mes: str = ""
    extra: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        """Pydantic配置."""

        extra = "allow"

    @field_validator("extra", mode="before")
    @classmethod
    def _coerce_extra(cls, value: Any) -> Dict[str, Any]:
        return value if isinstance(value, dict) else {}

    @property
    def display_text(self) -> Optional[str]:
        return self.extra.get(DISPLAY_TEXT_KEY)

    def is_translated(self) -> bool:
        return bool(self.extra.get(DISPLAY_TEXT_KEY))


class TextPayload(BaseModel):
    """单段文本请求/响应."""

    text: str


class SettingsUpdate(BaseModel):
    """设置更新请求, 未提供的字段保持不变."""

    provider: Optional[str] = None
    model: Optional[str] = None
    prompt_template: Optional[str] = None
    auto_mode: Optional[bool] = None


class SettingsResponse(BaseModel):
    """当前设置及该供应商可选模型."""

    settings: TranslationSettings
    models: List[str]


class ProviderInfo(BaseModel):
    """供应商信息."""

    name: str
    display_name: str
    models: List[str]


class ChatMessageCreate(BaseModel):
    """追加聊天消息请求."""

    mes: str
    name: str = ""
    is_user: bool = False


class HostEvent(BaseModel):
    """宿主事件, 携带消息下标."""

    type: str
    message_id: int


class ClearRequest(BaseModel):
    """清除译文请求, 必须显式确认."""

    confirm: bool = False


class ChatTranslationResult(BaseModel):
    """整段聊天翻译的统计."""

    total: int = 0
    translated: int = 0
    skipped: int = 0
    failed: int = 0


class EventMessageType:
    """SSE消息类型常量."""

    NOTICE = "notice"
    PROGRESS = "progress"
    MESSAGE_UPDATED = "message_updated"
    CHAT_RELOADED = "chat_reloaded"


class NoticeLevel:
    """提示级别常量."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
