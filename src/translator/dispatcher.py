"""供应商分发器: 一段文本进, 一段译文出."""

from typing import Any, Dict, Optional, Tuple

import httpx

from config.logging_config import get_logger
from models.models import TranslationSettings
from translator.errors import (
    MalformedResponseError,
    MissingCredentialError,
    NetworkError,
    ProviderError,
    SecretNotConfiguredError,
)
from translator.providers import ProviderSpec, get_provider_spec
from translator.secret_store import SecretStore

logger = get_logger(__name__)

ROUTING_DIRECT = "direct"
ROUTING_PROXY = "proxy"


def compose_prompt(prompt_template: str, text: str) -> str:
    """拼接提示词与待翻译文本."""
    return f'{prompt_template}\n\n"{text}"'


class ProviderDispatcher:
    """根据设置选择供应商, 发出一次请求并提取译文."""

    def __init__(
        self,
        secret_store: SecretStore,
        routing_mode: str = ROUTING_DIRECT,
        proxy_base_url: str = "",
        request_headers: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        初始化分发器.

        Args:
            secret_store: 密钥存储
            routing_mode: "direct" 直连供应商, "proxy" 经通用后端转发
            proxy_base_url: proxy 模式下的后端地址
            request_headers: 宿主注入的额外请求头
            timeout: 请求超时秒数, None 表示使用 httpx 默认值
            transport: 自定义传输层, 测试时注入 httpx.MockTransport
        """
        if routing_mode not in (ROUTING_DIRECT, ROUTING_PROXY):
            raise ValueError(f"Unknown routing mode: {routing_mode}")
        self.secret_store = secret_store
        self.routing_mode = routing_mode
        self.proxy_base_url = proxy_base_url.rstrip("/")
        self.request_headers = dict(request_headers or {})
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(
        cls, settings, secret_store: Optional[SecretStore] = None
    ) -> "ProviderDispatcher":
        return cls(
            secret_store or SecretStore.from_settings(settings),
            routing_mode=settings.routing_mode,
            proxy_base_url=settings.proxy_base_url,
            request_headers=settings.request_headers,
            timeout=settings.request_timeout,
        )

    async def translate(self, text: str, settings: TranslationSettings) -> str:
        """
        翻译单段文本.

        Args:
            text: 待翻译文本
            settings: 当前翻译设置

        Returns:
            去除首尾空白后的译文

        Raises:
            UnsupportedProviderError: 供应商未实现
            MissingCredentialError: 未配置密钥, 此时不会发出请求
            ProviderError: 供应商返回非成功状态码
            MalformedResponseError: 响应中找不到译文字段
            NetworkError: 传输层失败
        """
        spec = get_provider_spec(settings.provider)
        if not settings.model:
            raise ValueError(f"No model selected for provider {spec.name}")
        api_key = self._resolve_api_key(spec.name)

        prompt = compose_prompt(settings.prompt_template, text)
        url, headers, params, body = self._build_request(
            spec, settings.model, prompt, api_key
        )
        logger.debug(f"Dispatching translation to {spec.name} ({settings.model})")

        client_kwargs: Dict[str, Any] = {}
        if self.transport is not None:
            client_kwargs["transport"] = self.transport
        if self.timeout is not None:
            client_kwargs["timeout"] = self.timeout
        try:
            async with httpx.AsyncClient(**client_kwargs) as client:
                response = await client.post(
                    url, json=body, headers=headers, params=params
                )
        except httpx.TransportError as e:
            raise NetworkError(spec.name, str(e) or type(e).__name__) from e

        if not response.is_success:
            raise ProviderError(spec.name, response.status_code, response.text)
        return self._extract(spec, response)

    def _resolve_api_key(self, provider: str) -> str:
        if not self.secret_store.has_secret(provider):
            raise MissingCredentialError(provider)
        try:
            return self.secret_store.get_secret(provider)
        except SecretNotConfiguredError as e:
            raise MissingCredentialError(provider) from e

    def _build_request(
        self, spec: ProviderSpec, model: str, prompt: str, api_key: str
    ) -> Tuple[str, Dict[str, str], Dict[str, str], Dict[str, Any]]:
        headers = {**self.request_headers, "Content-Type": "application/json"}
        body = spec.build_body(model, prompt)
        if self.routing_mode == ROUTING_PROXY:
            url = f"{self.proxy_base_url}/api/{spec.name}"
            return url, headers, {}, {"apiKey": api_key, "model": model, **body}
        headers.update(spec.auth_headers(api_key))
        return spec.url_for(model), headers, spec.auth_params(api_key), body

    def _extract(self, spec: ProviderSpec, response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedResponseError(spec.name, "response is not JSON") from e
        try:
            text = spec.extract_text(payload)
        except (KeyError, IndexError, TypeError) as e:
            raise MalformedResponseError(
                spec.name, f"result field missing ({e!r})"
            ) from e
        if not isinstance(text, str):
            raise MalformedResponseError(
                spec.name, f"result field is {type(text).__name__}, not text"
            )
        return text.strip()
