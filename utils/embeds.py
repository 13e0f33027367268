from __future__ import annotations

from typing import TYPE_CHECKING

import discord

if TYPE_CHECKING:
    from utils.pp_pipeline import PpResult

FOOTER_TEXT = "this embed is fish certified™"


def format_stat(value: float | None) -> str:
    if value is None:
        return "N/A"
    return f"{value:g}"


def build_pp_embed(result: PpResult) -> discord.Embed:
    meta = result.metadata
    embed = discord.Embed(
        title=meta.display_name,
        color=discord.Color.from_rgb(*result.color),
        description=result.report.describe(),
        timestamp=discord.utils.utcnow(),
    )
    embed.add_field(name="AR", value=format_stat(meta.approach_rate), inline=True)
    embed.add_field(name="OD", value=format_stat(meta.overall_difficulty), inline=True)
    embed.add_field(name="CS", value=format_stat(meta.circle_size), inline=True)
    embed.add_field(name="HP", value=format_stat(meta.health_drain), inline=False)
    embed.set_image(url=result.cover_url)
    embed.set_footer(text=f"{FOOTER_TEXT} • {result.report.stars:.2f}★ • {result.report.max_combo}x")
    return embed
