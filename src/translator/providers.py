"""LLM 供应商定义.

每个供应商是一个 ProviderSpec: 端点、请求体构造、鉴权方式和响应提取函数。
新增供应商只需要在 PROVIDERS 中登记一项。
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Tuple

from translator.errors import UnsupportedProviderError

# anthropic 旧版 complete 接口要求的必填字段
ANTHROPIC_MAX_TOKENS = 1024
ANTHROPIC_VERSION = "2023-06-01"


def _no_auth(api_key: str) -> Dict[str, str]:
    return {}


@dataclass(frozen=True)
class ProviderSpec:
    """单个供应商的请求/响应约定."""

    name: str
    display_name: str
    models: Tuple[str, ...]
    endpoint: str
    build_body: Callable[[str, str], Dict[str, Any]]
    extract_text: Callable[[Dict[str, Any]], Any]
    auth_headers: Callable[[str], Dict[str, str]] = field(default=_no_auth)
    auth_params: Callable[[str], Dict[str, str]] = field(default=_no_auth)

    def url_for(self, model: str) -> str:
        return self.endpoint.format(model=model)


def _openai_body(model: str, prompt: str) -> Dict[str, Any]:
    return {"model": model, "messages": [{"role": "user", "content": prompt}]}


def _openai_text(payload: Dict[str, Any]) -> Any:
    return payload["choices"][0]["message"]["content"]


def _cohere_body(model: str, prompt: str) -> Dict[str, Any]:
    return {"model": model, "message": prompt}


def _cohere_text(payload: Dict[str, Any]) -> Any:
    return payload["text"]


def _google_body(model: str, prompt: str) -> Dict[str, Any]:
    return {"prompt": {"text": prompt}}


def _google_text(payload: Dict[str, Any]) -> Any:
    return payload["candidates"][0]["output"]


def _anthropic_body(model: str, prompt: str) -> Dict[str, Any]:
    return {
        "model": model,
        "prompt": f"\n\nHuman: {prompt}\n\nAssistant:",
        "max_tokens_to_sample": ANTHROPIC_MAX_TOKENS,
    }


def _anthropic_text(payload: Dict[str, Any]) -> Any:
    return payload["completion"]


def _gemini_body(model: str, prompt: str) -> Dict[str, Any]:
    return {"contents": [{"parts": [{"text": prompt}]}]}


def _gemini_text(payload: Dict[str, Any]) -> Any:
    return payload["candidates"][0]["content"]["parts"][0]["text"]


PROVIDERS: Dict[str, ProviderSpec] = {
    "openai": ProviderSpec(
        name="openai",
        display_name="OpenAI",
        models=("gpt-3.5-turbo", "gpt-4"),
        endpoint="https://api.openai.com/v1/chat/completions",
        build_body=_openai_body,
        extract_text=_openai_text,
        auth_headers=lambda key: {"Authorization": f"Bearer {key}"},
    ),
    "cohere": ProviderSpec(
        name="cohere",
        display_name="Cohere",
        models=("command", "command-xlarge"),
        endpoint="https://api.cohere.ai/v1/chat",
        build_body=_cohere_body,
        extract_text=_cohere_text,
        auth_headers=lambda key: {"Authorization": f"Bearer {key}"},
    ),
    "google": ProviderSpec(
        name="google",
        display_name="Google PaLM",
        models=("chat-bison", "text-bison"),
        endpoint="https://generativelanguage.googleapis.com/v1beta2/models/{model}:generateText",
        build_body=_google_body,
        extract_text=_google_text,
        auth_params=lambda key: {"key": key},
    ),
    "anthropic": ProviderSpec(
        name="anthropic",
        display_name="Anthropic",
        models=("claude-instant", "claude-v1"),
        endpoint="https://api.anthropic.com/v1/complete",
        build_body=_anthropic_body,
        extract_text=_anthropic_text,
        auth_headers=lambda key: {
            "x-api-key": key,
            "anthropic-version": ANTHROPIC_VERSION,
        },
    ),
    "gemini": ProviderSpec(
        name="gemini",
        display_name="Google Gemini",
        models=("gemini-1.5-flash", "gemini-1.5-pro"),
        endpoint="https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent",
        build_body=_gemini_body,
        extract_text=_gemini_text,
        auth_headers=lambda key: {"x-goog-api-key": key},
    ),
}


def get_provider_spec(provider: str) -> ProviderSpec:
    """按名称查找供应商, 未登记的名称抛出 UnsupportedProviderError."""
    spec = PROVIDERS.get(provider)
    if spec is None:
        raise UnsupportedProviderError(provider)
    return spec


def models_for(provider: str) -> List[str]:
    """返回供应商的可选模型, 未知供应商返回空列表."""
    spec = PROVIDERS.get(provider)
    return list(spec.models) if spec else []


def available_providers() -> List[str]:
    return list(PROVIDERS.keys())
