"""日志配置模块."""

import logging
from typing import Optional
from .settings import settings

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: Optional[str] = None, format_str: Optional[str] = None):
    """
    初始化根logger, 服务启动时调用一次.

    Args:
        level: 日志级别名称, 为空时使用 settings.log_level
        format_str: 日志格式, 为空时使用 DEFAULT_LOG_FORMAT
    """
    level_name = (level or settings.log_level or "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=format_str or DEFAULT_LOG_FORMAT,
        handlers=[logging.StreamHandler()],
    )
    # httpx 在 INFO 级别会打印完整请求URL, google 的 key 参数也在其中
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """按模块名获取logger, 通常传入 __name__."""
    return logging.getLogger(name)
