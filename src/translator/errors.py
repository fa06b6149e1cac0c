"""翻译相关的异常类型."""

from typing import Optional


class TranslationError(Exception):
    """翻译失败的基类."""

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.provider = provider


class UnsupportedProviderError(TranslationError):
    """设置中引用了未实现的供应商."""

    def __init__(self, provider: str):
        super().__init__(f"Unsupported LLM provider: {provider!r}", provider)


class MissingCredentialError(TranslationError):
    """发送请求前未找到供应商的 API 密钥."""

    def __init__(self, provider: str):
        super().__init__(f"API key for {provider} is not configured", provider)


class ProviderError(TranslationError):
    """供应商返回了非成功的 HTTP 响应."""

    def __init__(self, provider: str, status_code: Optional[int], body: str):
        super().__init__(f"Translation failed ({status_code}): {body}", provider)
        self.status_code = status_code
        self.body = body

    @property
    def is_auth_error(self) -> bool:
        return self.status_code in (401, 403)


class MalformedResponseError(TranslationError):
    """成功响应中缺少预期的译文字段."""

    def __init__(self, provider: str, detail: str):
        super().__init__(f"Malformed {provider} response: {detail}", provider)
        self.detail = detail


class NetworkError(TranslationError):
    """传输层失败, 例如连接被拒或超时."""

    def __init__(self, provider: str, detail: str):
        super().__init__(f"Network error calling {provider}: {detail}", provider)
        self.detail = detail


class SecretNotConfiguredError(KeyError):
    """密钥存储中没有对应的密钥."""

    def __init__(self, key: str):
        super().__init__(key)
        self.key = key


def is_credential_error(error: BaseException) -> bool:
    """判断异常是否与密钥配置相关."""
    if isinstance(error, MissingCredentialError):
        return True
    return isinstance(error, ProviderError) and error.is_auth_error
