"""翻译编排: 单条消息、整段聊天和输入框文本."""

from typing import Optional, Set

from tqdm.asyncio import tqdm_asyncio

from config.logging_config import get_logger
from models.models import DISPLAY_TEXT_KEY, ChatTranslationResult
from translator.dispatcher import ProviderDispatcher
from translator.errors import is_credential_error
from translator.host import ChatHost, EventSource, event_types
from translator.notifier import Notifier
from translator.settings_store import SettingsStore

logger = get_logger(__name__)


class TranslationOutcome:
    """translate_one 的结果."""

    TRANSLATED = "translated"
    SKIPPED = "skipped"
    FAILED = "failed"
    MISSING = "missing"


class TranslationOrchestrator:
    """把分发器应用到宿主聊天上, 负责幂等判断和用户提示."""

    def __init__(
        self,
        dispatcher: ProviderDispatcher,
        settings_store: SettingsStore,
        host: ChatHost,
        notifier: Notifier,
    ):
        self.dispatcher = dispatcher
        self.settings_store = settings_store
        self.host = host
        self.notifier = notifier
        # 正在翻译的消息(按对象标识), 防止重复触发时并发翻译同一条
        self._in_flight: Set[int] = set()

    async def translate(self, text: str) -> str:
        """供宿主其他功能调用的翻译入口, 异常直接抛出."""
        return await self.dispatcher.translate(text, self.settings_store.settings)

    def bind_events(self, event_source: EventSource) -> None:
        """消息渲染和切换(swipe)时自动翻译."""
        for event in event_types.ALL:
            event_source.on(event, self.translate_one)

    async def translate_one(self, message_id: int) -> str:
        """
        翻译单条消息并写入 extra.display_text.

        Args:
            message_id: 消息在当前聊天中的下标

        Returns:
            TranslationOutcome 中的一个值
        """
        chat = self.host.chat
        if not 0 <= message_id < len(chat):
            return TranslationOutcome.MISSING
        message = chat[message_id]

        if message.is_translated():
            return TranslationOutcome.SKIPPED
        key = id(message)
        if key in self._in_flight:
            logger.debug(f"Message {message_id} is already being translated")
            return TranslationOutcome.SKIPPED

        self._in_flight.add(key)
        try:
            original_text = self.host.substitute_params(
                message.mes, self.host.user_name, message.name
            )
            try:
                translation = await self.translate(original_text)
            except Exception as e:
                logger.error(f"Translation failed for message {message_id}: {e}")
                await self._report_failure(e, "翻译失败。")
                return TranslationOutcome.FAILED
            message.extra[DISPLAY_TEXT_KEY] = translation
        finally:
            self._in_flight.discard(key)

        try:
            await self.host.update_message_block(message_id, message)
        except Exception as e:
            # 译文已写入, 重绘失败不影响结果
            logger.error(f"Re-render failed for message {message_id}: {e}")
        return TranslationOutcome.TRANSLATED

    async def translate_all(self, progress_callback=None) -> ChatTranslationResult:
        """
        按顺序翻译当前聊天的全部消息, 完成后保存聊天.

        Args:
            progress_callback: 进度回调函数, 签名为 (progress, message)

        Returns:
            各结果的计数
        """
        chat = self.host.chat
        result = ChatTranslationResult(total=len(chat))
        if not chat:
            await self.notifier.warning("没有可翻译的聊天。")
            return result

        await self.notifier.info("开始翻译聊天，请稍候。")
        total = len(chat)
        for message_id in tqdm_asyncio(range(total), desc="翻译中", unit="条"):
            try:
                outcome = await self.translate_one(message_id)
            except Exception as e:
                # 单条失败不能中断整个循环
                logger.exception(f"Unexpected error on message {message_id}: {e}")
                await self.notifier.error("翻译失败。")
                outcome = TranslationOutcome.FAILED
            if outcome == TranslationOutcome.TRANSLATED:
                result.translated += 1
            elif outcome == TranslationOutcome.FAILED:
                result.failed += 1
            else:
                result.skipped += 1
            if progress_callback:
                await progress_callback(
                    (message_id + 1) / total * 100,
                    f"已完成 {message_id + 1}/{total} 条消息",
                )

        await self.host.save_chat()
        logger.info(
            f"Chat translation finished: {result.translated} translated, "
            f"{result.skipped} skipped, {result.failed} failed"
        )
        await self.notifier.success("聊天翻译完成。")
        return result

    async def translate_input(self, raw_text: str) -> Optional[str]:
        """翻译输入框中的文本并直接返回, 不修改任何已存储的状态."""
        if not raw_text:
            await self.notifier.warning("请先输入消息。")
            return None
        try:
            translated = await self.translate(raw_text)
        except Exception as e:
            logger.error(f"Input translation failed: {e}")
            await self._report_failure(e, "消息翻译失败。")
            raise
        await self.notifier.success("输入的消息已翻译。")
        return translated

    async def clear_translations(self, confirmed: bool) -> bool:
        """
        删除当前聊天中所有消息的译文.

        Args:
            confirmed: 用户是否已确认删除

        Returns:
            是否执行了删除
        """
        if not confirmed:
            return False

        removed = {}
        for index, message in enumerate(self.host.chat):
            if DISPLAY_TEXT_KEY in message.extra:
                removed[index] = message.extra.pop(DISPLAY_TEXT_KEY)
        try:
            await self.host.save_chat()
        except Exception as e:
            for index, text in removed.items():
                self.host.chat[index].extra[DISPLAY_TEXT_KEY] = text
            logger.error(f"Clearing translations failed: {e}")
            await self.notifier.error("删除译文失败。")
            raise
        await self.host.reload_current_chat()
        await self.notifier.success("已删除译文。")
        return True

    async def _report_failure(self, error: Exception, message: str) -> None:
        await self.notifier.error(message)
        if is_credential_error(error):
            provider = getattr(error, "provider", None) or self.settings_store.settings.provider
            await self.notifier.warning(f"请检查 {provider} 的 API 密钥配置。")
