"""啟動工具模組

Logging setup and the asyncio task-factory wrapper used by ``bot.py``.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import TYPE_CHECKING, Any

from loguru import logger

from utils.log_intercept import InterceptHandler

if TYPE_CHECKING:
    from collections.abc import Coroutine

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"

# strong refs so background tasks are not garbage collected mid-flight
_tasks_set: set[asyncio.Task[Any] | asyncio.Future[Any]] = set()


def should_ignore_error(error: BaseException) -> bool:
    """Cancellation is how tasks are normally torn down, not a failure."""
    return isinstance(error, asyncio.CancelledError)


def wrap_task_factory() -> None:
    """Log uncaught exceptions from tasks created with ``asyncio.create_task()``.

    Without this, a background task that dies is only reported when (and if)
    it gets garbage collected.
    """
    loop = asyncio.get_running_loop()
    original_factory = loop.get_task_factory()

    async def coro_wrapper(coro: Coroutine[Any, Any, Any], name: str | None = None) -> Any:
        try:
            return await coro
        except Exception as e:
            if not should_ignore_error(e):
                task_name = name or getattr(coro, "__name__", str(coro))
                logger.exception(f"任務 '{task_name}' 中發生未捕獲的異常: {e}")
            raise

    def new_factory(
        loop: asyncio.AbstractEventLoop,
        coro: Coroutine[Any, Any, Any],
        **kwargs: Any,
    ) -> asyncio.Task[Any]:
        wrapped_coro = coro_wrapper(coro, name=kwargs.get("name"))

        if original_factory:
            task = original_factory(loop, wrapped_coro, **kwargs)
        else:
            task = asyncio.Task(wrapped_coro, loop=loop, **kwargs)

        _tasks_set.add(task)
        task.add_done_callback(_tasks_set.discard)
        return task  # type: ignore[return-value]

    loop.set_task_factory(new_factory)


def setup_logging(log_file: str | None = "logs/bot.log", log_level: str = "INFO") -> None:
    """設定 loguru 日誌系統。

    Replaces loguru's default sink with a coloured stderr sink, adds a rotating
    file sink (unless ``log_file`` is ``None``) and routes the standard
    ``logging`` module (discord.py, aiohttp) through :class:`InterceptHandler`.

    Args:
        log_file: 日誌文件路徑
        log_level: 日誌等級，例如 "INFO" 或 "DEBUG"
    """
    logger.remove()
    logger.add(sys.stderr, level=log_level, format=CONSOLE_FORMAT)

    logging.basicConfig(handlers=[InterceptHandler()], level=logging.INFO, force=True)

    if log_file:
        logger.add(
            log_file,
            rotation="10 MB",
            retention="7 days",
            level=log_level,
            format=FILE_FORMAT,
            encoding="utf-8",
        )

    logger.info("✅ 日誌系統初始化完成。日誌等級: {log_level}", log_level=log_level)
