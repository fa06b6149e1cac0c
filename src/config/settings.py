"""应用配置管理模块."""

from typing import Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """应用配置类."""

    # 请求路由: "direct" 直连各供应商, "proxy" 走通用后端 /api/{provider}
    routing_mode: str = Field(default="direct")
    proxy_base_url: str = Field(default="http://127.0.0.1:8000")
    request_headers: Dict[str, str] = Field(default_factory=dict)
    # None 表示沿用 httpx 的默认超时
    request_timeout: Optional[float] = Field(default=None, gt=0)
    # 各供应商密钥, 命名为 {provider}_api_key
    openai_api_key: Optional[str] = Field(default=None)
    cohere_api_key: Optional[str] = Field(default=None)
    google_api_key: Optional[str] = Field(default=None)
    anthropic_api_key: Optional[str] = Field(default=None)
    gemini_api_key: Optional[str] = Field(default=None)
    settings_file: str = Field(default="data/llm_translate_settings.json")
    chat_file: str = Field(default="data/chat.jsonl")
    user_name: str = Field(default="User")
    save_debounce_seconds: float = Field(default=1.0, ge=0, le=60)
    log_level: str = Field(default="INFO")

    class Config:
        """Pydantic配置."""

        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


settings = Settings()
