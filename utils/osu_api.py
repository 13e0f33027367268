from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any

import aiohttp
from loguru import logger

from utils.errors import FetchError

# osu! 靜態資源 (封面圖)
OSU_ASSETS_BASE_URL = "https://assets.ppy.sh"
# .osu 譜面檔案下載
OSU_WEB_BASE_URL = "https://osu.ppy.sh"
# osu! API v1 的基礎 URL
OSU_API_V1_BASE_URL = "https://osu.ppy.sh/api"


def _as_float(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _as_int(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class BeatmapMetadata:
    beatmap_id: int
    beatmapset_id: int | None
    artist: str
    title: str
    version: str
    approach_rate: float | None
    overall_difficulty: float | None
    circle_size: float | None
    health_drain: float | None
    star_rating: float | None = None
    bpm: float | None = None
    max_combo: int | None = None

    @property
    def display_name(self) -> str:
        return f"{self.artist} - {self.title}\n[{self.version}]"

    @classmethod
    def from_api_v1(cls, data: dict) -> BeatmapMetadata:
        """Build from one entry of the API v1 ``/get_beatmaps`` response (all values are strings)."""
        return cls(
            beatmap_id=int(data["beatmap_id"]),
            beatmapset_id=_as_int(data.get("beatmapset_id")),
            artist=data.get("artist") or "Unknown Artist",
            title=data.get("title") or "Unknown Title",
            version=data.get("version") or "Unknown Version",
            approach_rate=_as_float(data.get("diff_approach")),
            overall_difficulty=_as_float(data.get("diff_overall")),
            circle_size=_as_float(data.get("diff_size")),
            health_drain=_as_float(data.get("diff_drain")),
            star_rating=_as_float(data.get("difficultyrating")),
            bpm=_as_float(data.get("bpm")),
            max_combo=_as_int(data.get("max_combo")),
        )


class OsuAPI:
    """Async client for the three osu! endpoints the bot needs.

    Acts as the image store (covers), the beatmap store (.osu files) and the
    metadata store (API v1 ``get_beatmaps``). Every failure is raised as
    :class:`FetchError`; nothing is retried.
    """

    def __init__(
        self,
        api_key: str,
        timeout: float = 20.0,
        assets_url: str = OSU_ASSETS_BASE_URL,
        web_url: str = OSU_WEB_BASE_URL,
        api_url: str = OSU_API_V1_BASE_URL,
    ) -> None:
        self.api_key = api_key
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.assets_url = assets_url.rstrip("/")
        self.web_url = web_url.rstrip("/")
        self.api_url = api_url.rstrip("/")
        self.session: aiohttp.ClientSession | None = None

    async def setup(self) -> None:
        """初始化 aiohttp.ClientSession"""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(timeout=self.timeout)

    async def close(self) -> None:
        """關閉 aiohttp.ClientSession"""
        if self.session and not self.session.closed:
            await self.session.close()

    async def _get(self, url: str, params: dict | None = None) -> bytes:
        """GET ``url`` and return the response body. Raises FetchError."""
        await self.setup()
        # params may carry the api key, so only the bare url is ever logged
        logger.debug(f"[OSU_API] GET {url}")
        try:
            async with self.session.get(url, params=params) as response:
                body = await response.read()
                if response.status >= 400:
                    logger.error(f"[OSU_API] HTTP {response.status} for URL {url}")
                    raise FetchError(
                        f"HTTP {response.status} for {url}", url=url, status=response.status
                    )
                return body
        except asyncio.TimeoutError as e:
            logger.error(f"[OSU_API] Timed out after {self.timeout.total}s for URL {url}")
            raise FetchError(f"timed out fetching {url}", url=url) from e
        except aiohttp.ClientError as e:
            logger.error(f"[OSU_API] ClientError (e.g., connection issue): {e} for URL {url}")
            raise FetchError(f"{type(e).__name__} fetching {url}", url=url) from e

    def cover_url(self, mapset_id: int) -> str:
        return f"{self.assets_url}/beatmaps/{mapset_id}/covers/cover.jpg"

    async def get_cover_image(self, mapset_id: int) -> bytes:
        """Download the mapset's cover.jpg."""
        return await self._get(self.cover_url(mapset_id))

    async def get_osu_file(self, beatmap_id: int) -> bytes:
        """
        Download the raw .osu file of a difficulty.
        https://osu.ppy.sh/osu/{beatmap_id}
        An unknown id comes back as 200 with an empty body, which is treated as a failure.
        """
        url = f"{self.web_url}/osu/{beatmap_id}"
        data = await self._get(url)
        if not data:
            raise FetchError(f"empty .osu file for beatmap {beatmap_id}", url=url)
        logger.debug(f"[OSU_API] Downloaded {len(data)} bytes for beatmap {beatmap_id}")
        return data

    async def get_beatmap(self, beatmap_id: int) -> BeatmapMetadata:
        """
        從 osu! API v1 獲取譜面資訊。
        API v1 端點: /get_beatmaps
        https://github.com/ppy/osu-api/wiki#apiget_beatmaps
        """
        url = f"{self.api_url}/get_beatmaps"
        body = await self._get(url, params={"k": self.api_key, "b": beatmap_id})
        try:
            data = json.loads(body)
        except ValueError as e:
            raise FetchError(f"invalid JSON from {url}", url=url) from e

        if not isinstance(data, list) or not data:
            logger.warning(
                f"[OSU_API] get_beatmaps returned no beatmap for id {beatmap_id}: {str(data)[:200]}"
            )
            raise FetchError(f"beatmap {beatmap_id} not found", url=url)
        try:
            return BeatmapMetadata.from_api_v1(data[0])
        except (KeyError, TypeError, ValueError) as e:
            raise FetchError(f"unexpected get_beatmaps payload for {beatmap_id}", url=url) from e
