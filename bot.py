"""fishbot 主程式

A small Discord bot that answers a handful of prefix commands, the main one
being ``pp <beatmap link>``.
"""

from __future__ import annotations

import asyncio
import pathlib
import sys
from typing import Any

import discord
from discord.ext import commands
from loguru import logger

from utils.config import BotConfig, load_config
from utils.errors import ConfigError
from utils.osu_api import OsuAPI
from utils.startup import setup_logging, wrap_task_factory

COGS_DIR = pathlib.Path(__file__).parent / "cogs"


class FishBot(commands.Bot):
    """discord.py Bot carrying the shared config and osu! client."""

    def __init__(self, config: BotConfig, **options: Any) -> None:
        super().__init__(command_prefix=config.command_prefix, **options)
        self.config = config
        self.osu_api_client: OsuAPI | None = None

    async def setup_hook(self) -> None:
        """Create the osu! client and load cogs before connecting to the gateway."""
        logger.info("== 開始異步設置 ==")

        self.osu_api_client = OsuAPI(
            api_key=self.config.osu_api_key, timeout=self.config.http_timeout
        )
        await self.osu_api_client.setup()
        logger.info("✅ OsuAPI 客戶端已初始化")

        await self._load_all_cogs()
        logger.info("✅ 異步設置完成")

    async def _load_all_cogs(self) -> None:
        logger.info("== 開始載入所有 Cog 模組 ==")
        for path in sorted(COGS_DIR.glob("*.py")):
            if path.name.startswith("_"):
                continue
            try:
                await self.load_extension(f"cogs.{path.stem}")
                logger.info("✅ 已成功載入 Cog: {cog_name}", cog_name=path.stem)
            except commands.ExtensionAlreadyLoaded:
                logger.warning("⚠️ Cog {cog_name} 已經載入", cog_name=path.stem)
            except Exception as e:
                logger.exception(f"❌ 載入 Cog {path.stem} 失敗: {e}")

    async def on_ready(self) -> None:
        logger.info("== Bot Ready ==")
        logger.info(
            "Logged in as: {user_name} (ID: {user_id})",
            user_name=self.user.name if self.user else "Unknown",
            user_id=self.user.id if self.user else "Unknown",
        )
        logger.info("Discord.py Version: {version}", version=discord.__version__)

    async def on_error(self, event_method: str, *args: Any, **kwargs: Any) -> None:
        logger.exception(f"在事件 '{event_method}' 中發生未捕獲的異常")

    async def close(self) -> None:
        logger.info("機器人正在關閉...")
        if self.osu_api_client:
            try:
                await self.osu_api_client.close()
                logger.info("✅ OsuAPI 客戶端已關閉")
            except Exception as e:
                logger.exception(f"❌ 關閉 OsuAPI 客戶端時發生錯誤: {e}")

        await super().close()
        logger.info("機器人關閉完成")


async def main() -> None:
    try:
        config = load_config()
    except ConfigError as e:
        setup_logging()
        logger.critical(f"❌ 錯誤：{e}。機器人無法啟動。")
        sys.exit(1)

    setup_logging(log_file=config.log_file, log_level=config.log_level)

    intents = discord.Intents.default()
    intents.message_content = True

    bot = FishBot(
        config,
        intents=intents,
        help_command=None,  # replaced by the cog's own help command
    )

    try:
        logger.info("正在啟動機器人...")
        wrap_task_factory()
        await bot.start(config.discord_token)
    except KeyboardInterrupt:
        logger.info("收到鍵盤中斷信號，正在優雅地關閉機器人...")
    except Exception:
        logger.exception("啟動機器人時發生未預期的錯誤")
    finally:
        if not bot.is_closed():
            await bot.close()


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("程序被強制終止。")
