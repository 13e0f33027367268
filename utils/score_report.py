from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Protocol

import rosu_pp_py as rosu
from loguru import logger

from utils.errors import InvalidBeatmapData

FC_ACCURACIES = (95.0, 100.0)
# every .osu file opens with this line, e.g. "osu file format v14"
OSU_FILE_HEADER = "osu file format v"


class PerformanceCalculator(Protocol):
    """Difficulty/performance math over a parsed beatmap."""

    def parse(self, data: bytes) -> Any: ...

    def difficulty(self, beatmap: Any) -> tuple[float, int]:
        """Return ``(stars, max_combo)`` for the nomod beatmap."""
        ...

    def performance(self, beatmap: Any, *, accuracy: float, combo: int, misses: int) -> float: ...


class RosuCalculator:
    """:class:`PerformanceCalculator` backed by rosu-pp-py."""

    def parse(self, data: bytes) -> Any:
        """Parse a .osu file. Raises InvalidBeatmapData for anything else.

        rosu-pp accepts arbitrary text as an empty map, so the header is
        checked first.
        """
        text = data.decode("utf-8-sig", errors="replace").lstrip("\ufeff").lstrip()
        if not text.startswith(OSU_FILE_HEADER):
            raise InvalidBeatmapData(f"not a .osu file, starts with {text[:32]!r}")
        try:
            return rosu.Beatmap(content=text)
        except Exception as e:
            raise InvalidBeatmapData(f"rosu-pp could not parse beatmap: {type(e).__name__} - {e}") from e

    def difficulty(self, beatmap: Any) -> tuple[float, int]:
        attrs = rosu.Difficulty().calculate(beatmap)
        return attrs.stars, attrs.max_combo

    def performance(self, beatmap: Any, *, accuracy: float, combo: int, misses: int) -> float:
        perf = rosu.Performance(accuracy=accuracy, combo=combo, misses=misses)
        return perf.calculate(beatmap).pp


def round_half_away(value: float) -> int:
    """Round to the nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


@dataclass(frozen=True)
class ScoreReport:
    pp_95: int
    pp_100: int
    stars: float
    max_combo: int

    def describe(self) -> str:
        return f"**__assuming nomod fc:__**\n95%: {self.pp_95}pp\n100%: {self.pp_100}pp"


def compute_score_report(data: bytes, calculator: PerformanceCalculator) -> ScoreReport:
    """Compute nomod full-combo pp at 95% and 100% accuracy.

    Pure and synchronous; callers on the event loop should run it in a thread.

    Raises:
        InvalidBeatmapData: ``data`` is not a beatmap the calculator can read.
    """
    beatmap = calculator.parse(data)
    stars, max_combo = calculator.difficulty(beatmap)

    pp_95, pp_100 = (
        calculator.performance(beatmap, accuracy=acc, combo=max_combo, misses=0)
        for acc in FC_ACCURACIES
    )
    logger.debug(
        f"[ScoreReport] stars={stars:.2f} max_combo={max_combo} pp95={pp_95:.2f} pp100={pp_100:.2f}"
    )
    return ScoreReport(
        pp_95=round_half_away(pp_95),
        pp_100=round_half_away(pp_100),
        stars=stars,
        max_combo=max_combo,
    )
