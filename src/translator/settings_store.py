"""翻译设置的加载与防抖保存."""

import asyncio
import json
import os
from typing import List, Optional

from pydantic import ValidationError

from config.logging_config import get_logger
from models.models import DEFAULT_PROMPT, TranslationSettings
from translator.errors import UnsupportedProviderError
from translator.providers import PROVIDERS, models_for

logger = get_logger(__name__)


class SettingsStore:
    """持有进程内唯一的 TranslationSettings, 并负责持久化."""

    def __init__(self, path: str, debounce_seconds: float = 1.0):
        self.path = path
        self.debounce_seconds = debounce_seconds
        self._settings = TranslationSettings()
        self._pending_save: Optional[asyncio.TimerHandle] = None

    @property
    def settings(self) -> TranslationSettings:
        return self._settings

    def load(self) -> TranslationSettings:
        """读取持久化设置, 缺失的键使用默认值."""
        data = {}
        if os.path.exists(self.path):
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    data = json.load(f) or {}
                if not isinstance(data, dict):
                    raise ValueError("settings file must contain a JSON object")
            except (OSError, ValueError) as e:
                logger.warning(f"Could not load settings from {self.path}: {e}")
                data = {}
        try:
            self._settings = TranslationSettings.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Invalid settings in {self.path}, using defaults: {e}")
            self._settings = TranslationSettings()
        if self._settings.provider not in PROVIDERS:
            logger.warning(f"Persisted provider is not supported: {self._settings.provider}")
        self.update_model_list()
        return self._settings

    def available_models(self, provider: Optional[str] = None) -> List[str]:
        return models_for(provider or self._settings.provider)

    def update_model_list(self) -> List[str]:
        """按当前供应商重建模型列表, 已选模型不在列表中时选第一个."""
        models = self.available_models()
        if self._settings.model not in models:
            self._settings.model = models[0] if models else ""
        return models

    def update(
        self,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        prompt_template: Optional[str] = None,
        auto_mode: Optional[bool] = None,
    ) -> TranslationSettings:
        """
        修改设置并触发防抖保存.

        Args:
            provider: 新供应商
            model: 新模型, 必须属于(新)供应商
            prompt_template: 新提示词, 空白时恢复默认
            auto_mode: 保留开关

        Returns:
            更新后的设置
        """
        target_provider = provider if provider is not None else self._settings.provider
        if provider is not None and provider not in PROVIDERS:
            raise UnsupportedProviderError(provider)
        if model is not None and model not in models_for(target_provider):
            raise ValueError(f"Model {model!r} is not available for {target_provider}")

        if provider is not None and provider != self._settings.provider:
            self._settings.provider = provider
            self.update_model_list()
        if model is not None:
            self._settings.model = model
        if prompt_template is not None:
            self._settings.prompt_template = (
                prompt_template if prompt_template.strip() else DEFAULT_PROMPT
            )
        if auto_mode is not None:
            self._settings.auto_mode = auto_mode
        self.save_debounced()
        return self._settings

    def save(self) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(
                self._settings.model_dump(by_alias=True), f, indent=2, ensure_ascii=False
            )
        logger.debug(f"Settings saved to {self.path}")

    def save_debounced(self) -> None:
        """在防抖窗口内合并多次保存, 没有运行中的事件循环时立即保存."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.save()
            return
        if self._pending_save is not None:
            self._pending_save.cancel()
        self._pending_save = loop.call_later(self.debounce_seconds, self._run_pending_save)

    def _run_pending_save(self) -> None:
        self._pending_save = None
        try:
            self.save()
        except OSError as e:
            logger.error(f"Debounced settings save failed: {e}")

    def flush(self) -> None:
        """取消待执行的防抖保存并立即写盘."""
        if self._pending_save is not None:
            self._pending_save.cancel()
            self._pending_save = None
            self.save()
