from __future__ import annotations

import contextlib
import io
from types import SimpleNamespace

import discord
import pytest
from PIL import Image

from utils.errors import FetchError, InvalidBeatmapData
from utils.osu_api import BeatmapMetadata

LINK = "https://osu.ppy.sh/beatmapsets/12345/abc#osu/67890"


def png_bytes(color: tuple[int, int, int], size: tuple[int, int] = (8, 8)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


def make_metadata(beatmap_id: int = 67890) -> BeatmapMetadata:
    return BeatmapMetadata(
        beatmap_id=beatmap_id,
        beatmapset_id=12345,
        artist="xi",
        title="FREEDOM DiVE",
        version="FOUR DIMENSIONS",
        approach_rate=10.0,
        overall_difficulty=8.0,
        circle_size=4.0,
        health_drain=6.0,
    )


class FakeCalculator:
    """Calculator whose pp is a simple function of accuracy."""

    def __init__(self, pp_by_accuracy: dict[float, float] | None = None) -> None:
        self.pp_by_accuracy = pp_by_accuracy or {95.0: 250.4, 100.0: 300.5}
        self.performance_calls: list[dict] = []

    def parse(self, data: bytes) -> bytes:
        if not data.startswith(b"osu file format"):
            raise InvalidBeatmapData("not an .osu file")
        return data

    def difficulty(self, beatmap: bytes) -> tuple[float, int]:
        return 6.45, 2385

    def performance(self, beatmap: bytes, *, accuracy: float, combo: int, misses: int) -> float:
        self.performance_calls.append({"accuracy": accuracy, "combo": combo, "misses": misses})
        return self.pp_by_accuracy[accuracy]


class FakeOsu:
    """Image, beatmap and metadata store in one, with switchable failures."""

    def __init__(self) -> None:
        self.cover = png_bytes((200, 30, 30))
        self.osu_file = b"osu file format v14\n"
        self.metadata = make_metadata()
        self.fail_cover = False
        self.fail_osu_file = False
        self.fail_metadata = False
        self.calls: list[tuple[str, int]] = []

    def cover_url(self, mapset_id: int) -> str:
        return f"https://assets.example/beatmaps/{mapset_id}/covers/cover.jpg"

    async def get_cover_image(self, mapset_id: int) -> bytes:
        self.calls.append(("cover", mapset_id))
        if self.fail_cover:
            raise FetchError("HTTP 404", status=404)
        return self.cover

    async def get_osu_file(self, beatmap_id: int) -> bytes:
        self.calls.append(("osu_file", beatmap_id))
        if self.fail_osu_file:
            raise FetchError("HTTP 404", status=404)
        return self.osu_file

    async def get_beatmap(self, beatmap_id: int) -> BeatmapMetadata:
        self.calls.append(("metadata", beatmap_id))
        if self.fail_metadata:
            raise FetchError("beatmap not found")
        return self.metadata


class FakeContext:
    """Just enough of commands.Context to record what a command sends."""

    def __init__(self, created_at=None, command: str = "pp") -> None:
        self.replies: list[str | None] = []
        self.embeds: list[discord.Embed] = []
        self.message = SimpleNamespace(created_at=created_at or discord.utils.utcnow())
        self.author = "tester#0001"
        self.clean_prefix = "~"
        self.command = command

    @property
    def responses(self) -> int:
        return len(self.replies) + len(self.embeds)

    async def reply(self, content: str | None = None, **kwargs) -> None:
        self.replies.append(content)

    async def send(self, content: str | None = None, *, embed: discord.Embed | None = None, **kwargs) -> None:
        if embed is not None:
            self.embeds.append(embed)
        else:
            self.replies.append(content)

    def typing(self):
        return contextlib.nullcontext()


@pytest.fixture
def fake_osu() -> FakeOsu:
    return FakeOsu()


@pytest.fixture
def calculator() -> FakeCalculator:
    return FakeCalculator()
