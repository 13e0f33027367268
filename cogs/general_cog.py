from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

import discord
from discord.ext import commands
from loguru import logger

from utils.embeds import build_pp_embed
from utils.errors import BotError
from utils.pp_pipeline import PpPipeline
from utils.score_report import RosuCalculator

if TYPE_CHECKING:
    from utils.osu_api import OsuAPI

GREETING = "Hi, I'm a fish, and definitely not a robot. Definitely."
GENERIC_ERROR = "Something went wrong while handling that command."

HELP_LINES = (
    ("help", "", "Sends the message you're currently reading."),
    ("hi", "", "Say hi to the fish."),
    ("ping", "", "Prints the latency between the user's message and the fish's response."),
    ("pp", " [beatmap link]", "Performs pp calculation on a given beatmap link."),
    ("get_ids", " [beatmap link]", "Shows the mapset and beatmap ids found in a link."),
)


def build_help_text(prefix: str) -> str:
    lines = [f"{prefix}{name}{args} # {desc}" for name, args, desc in HELP_LINES]
    return "```yaml\n" + "\n".join(lines) + "\n```"


def latency_ms(sent_at, now) -> int:
    """Milliseconds between two aware datetimes, never negative (clock skew)."""
    return max(0, (now - sent_at) // timedelta(milliseconds=1))


class GeneralCog(commands.Cog):
    def __init__(self, bot: commands.Bot, pipeline: PpPipeline | None = None) -> None:
        self.bot = bot
        if pipeline is None:
            osu_api: OsuAPI = bot.osu_api_client
            pipeline = PpPipeline(
                images=osu_api, beatmaps=osu_api, metadata=osu_api, calculator=RosuCalculator()
            )
        self.pipeline = pipeline

    @commands.command(name="help")
    async def help(self, ctx: commands.Context) -> None:
        await ctx.reply(build_help_text(ctx.clean_prefix))

    @commands.command(name="hi")
    async def hi(self, ctx: commands.Context) -> None:
        await ctx.reply(GREETING)

    @commands.command(name="ping")
    async def ping(self, ctx: commands.Context) -> None:
        ms = latency_ms(ctx.message.created_at, discord.utils.utcnow())
        await ctx.reply(f"fish. ({ms}ms)")

    @commands.command(name="pp")
    async def pp(self, ctx: commands.Context, link: str) -> None:
        logger.debug(f"[GeneralCog] pp invoked by {ctx.author} with {link!r}")
        try:
            async with ctx.typing():
                result = await self.pipeline.run(link)
        except BotError as e:
            logger.warning(f"[GeneralCog] pp failed for {link!r}: {type(e).__name__} - {e}")
            await ctx.reply(e.user_message)
            return

        await ctx.send(embed=build_pp_embed(result))

    @commands.command(name="get_ids")
    async def get_ids(self, ctx: commands.Context, link: str) -> None:
        try:
            ids, metadata = await self.pipeline.resolve(link)
        except BotError as e:
            logger.warning(f"[GeneralCog] get_ids failed for {link!r}: {e}")
            await ctx.reply("could not get ids")
            return

        text = f"mapset id: {ids.mapset_id}\nbeatmap id: {ids.beatmap_id}\n"
        text += metadata.display_name if metadata else "(title lookup failed)"
        await ctx.reply(text)

    async def cog_command_error(self, ctx: commands.Context, error: commands.CommandError) -> None:
        if isinstance(error, commands.MissingRequiredArgument):
            await ctx.reply(f"Usage: `{ctx.clean_prefix}{ctx.command} [beatmap link]`")
            return
        logger.opt(exception=error).error(
            f"[GeneralCog] Unhandled error in command '{ctx.command}': {error}"
        )
        await ctx.reply(GENERIC_ERROR)


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(GeneralCog(bot))
    logger.info("GeneralCog loaded.")
