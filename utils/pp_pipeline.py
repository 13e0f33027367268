"""The ``pp`` command pipeline.

link -> ids -> (cover colour | .osu file) -> score report -> metadata.

Each step either returns its value or raises a :class:`~utils.errors.BotError`
subclass; the cog turns whichever error surfaces into a single reply. The cover
colour is the one step whose failure is swallowed, since it is only cosmetic.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from loguru import logger

from utils.beatmap_link import IdentifierPair, parse_identifiers
from utils.cover_color import DEFAULT_COLOR, RGB, dominant_color
from utils.errors import BotError, FetchError
from utils.score_report import PerformanceCalculator, ScoreReport, compute_score_report

if TYPE_CHECKING:
    from utils.osu_api import BeatmapMetadata


class ImageStore(Protocol):
    def cover_url(self, mapset_id: int) -> str: ...

    async def get_cover_image(self, mapset_id: int) -> bytes: ...


class BeatmapStore(Protocol):
    async def get_osu_file(self, beatmap_id: int) -> bytes: ...


class MetadataStore(Protocol):
    async def get_beatmap(self, beatmap_id: int) -> BeatmapMetadata: ...


@dataclass(frozen=True)
class PpResult:
    ids: IdentifierPair
    color: RGB
    report: ScoreReport
    metadata: BeatmapMetadata
    cover_url: str


class PpPipeline:
    def __init__(
        self,
        images: ImageStore,
        beatmaps: BeatmapStore,
        metadata: MetadataStore,
        calculator: PerformanceCalculator,
    ) -> None:
        self.images = images
        self.beatmaps = beatmaps
        self.metadata = metadata
        self.calculator = calculator

    async def cover_color(self, mapset_id: int) -> RGB:
        """Fetch and analyse the cover; any failure falls back to ``DEFAULT_COLOR``."""
        try:
            image_bytes = await self.images.get_cover_image(mapset_id)
            return await asyncio.to_thread(dominant_color, image_bytes)
        except BotError as e:
            logger.warning(f"[PpPipeline] Cover colour for mapset {mapset_id} unavailable, using default: {e}")
            return DEFAULT_COLOR

    async def run(self, link: str) -> PpResult:
        """Run the whole pipeline for ``link``.

        Raises:
            ParseError: before any network call, if the link is malformed.
            FetchError: the .osu file or the metadata could not be fetched.
            InvalidBeatmapData: the .osu file could not be parsed.
        """
        ids = parse_identifiers(link)
        logger.info(f"[PpPipeline] mapset={ids.mapset_id} beatmap={ids.beatmap_id}")

        # cover and .osu file are independent; cover_color never raises
        color, osu_file = await asyncio.gather(
            self.cover_color(ids.mapset_id),
            self.beatmaps.get_osu_file(ids.beatmap_id),
        )
        report = await asyncio.to_thread(compute_score_report, osu_file, self.calculator)
        metadata = await self.metadata.get_beatmap(ids.beatmap_id)

        return PpResult(
            ids=ids,
            color=color,
            report=report,
            metadata=metadata,
            cover_url=self.images.cover_url(ids.mapset_id),
        )

    async def resolve(self, link: str) -> tuple[IdentifierPair, BeatmapMetadata | None]:
        """Parse ``link`` and look up its title. A failed lookup yields ``None`` metadata."""
        ids = parse_identifiers(link)
        try:
            metadata = await self.metadata.get_beatmap(ids.beatmap_id)
        except FetchError as e:
            logger.warning(f"[PpPipeline] Title lookup for beatmap {ids.beatmap_id} failed: {e}")
            metadata = None
        return ids, metadata
