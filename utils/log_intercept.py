"""Bridge from the standard ``logging`` module to loguru.

discord.py and aiohttp log through ``logging``; installing
:class:`InterceptHandler` as the root handler makes their records show up in
the same loguru sinks as the bot's own messages.
"""

from __future__ import annotations

import inspect
import logging

from loguru import logger


class InterceptHandler(logging.Handler):
    """把標準 logging 的紀錄轉交給 loguru。

    由 ``setup_logging`` 以 ``force=True`` 裝到 root logger 上，
    discord.py 與 aiohttp 的日誌因此會進到同一組 sink。
    """

    def emit(self, record: logging.LogRecord) -> None:
        """轉發一筆日誌紀錄。

        Args:
            record: 標準 logging 的日誌紀錄
        """
        # 對應到 loguru 的等級名稱，沒有就保留數字等級
        level: str | int
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # 跳出 logging 模組的堆疊幀，讓 loguru 顯示真正的呼叫位置
        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())
