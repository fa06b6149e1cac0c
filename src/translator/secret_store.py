"""API 密钥存储."""

from typing import Dict, Optional

from translator.errors import SecretNotConfiguredError
from translator.providers import available_providers


def secret_key_for(provider: str) -> str:
    return f"{provider}_api_key"


class SecretStore:
    """按 {provider}_api_key 保存各供应商密钥."""

    def __init__(self, secrets: Optional[Dict[str, Optional[str]]] = None):
        self._secrets: Dict[str, str] = {
            key: value for key, value in (secrets or {}).items() if value
        }

    @classmethod
    def from_settings(cls, settings) -> "SecretStore":
        """从应用配置中读取所有已登记供应商的密钥."""
        return cls(
            {
                secret_key_for(provider): getattr(
                    settings, secret_key_for(provider), None
                )
                for provider in available_providers()
            }
        )

    def has_secret(self, provider: str) -> bool:
        return bool(self._secrets.get(secret_key_for(provider), "").strip())

    def get_secret(self, provider: str) -> str:
        key = secret_key_for(provider)
        if not self.has_secret(provider):
            raise SecretNotConfiguredError(key)
        return self._secrets[key]

    def secret_state(self) -> Dict[str, bool]:
        """各供应商是否已配置密钥, 不返回密钥本身."""
        return {provider: self.has_secret(provider) for provider in available_providers()}
