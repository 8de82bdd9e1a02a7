"""Segregation score rubric and bin rankings.

Everything here is stateless and free of I/O. The rubric starts every bin at
100 points and adjusts it:

* average moisture above 750 costs 30 points, above 600 costs 15;
* average weight above 3 kg costs 20 points, above 1.5 kg costs 7;
* more than 15 readings earns 5 points.

The result is rounded and clamped to ``[0, 100]``. All comparisons are
strict, so a value sitting exactly on a threshold takes the milder branch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from services.aggregator import BinSummary, round_half_away

BASE_SCORE = 100
MIN_SCORE = 0
MAX_SCORE = 100

HIGH_MOISTURE = 750
HIGH_MOISTURE_PENALTY = 30
ELEVATED_MOISTURE = 600
ELEVATED_MOISTURE_PENALTY = 15

HEAVY_WEIGHT_KG = 3
HEAVY_WEIGHT_PENALTY = 20
ELEVATED_WEIGHT_KG = 1.5
ELEVATED_WEIGHT_PENALTY = 7

SAMPLE_BONUS_THRESHOLD = 15
SAMPLE_BONUS = 5

TOP_LIMIT = 10


@dataclass(frozen=True)
class ScoredBin:
    summary: BinSummary
    score: int

    @property
    def bin_id(self) -> str:
        return self.summary.bin_id


@dataclass(frozen=True)
class TopBins:
    performers: List[ScoredBin] = field(default_factory=list)
    offenders: List[ScoredBin] = field(default_factory=list)


def clamp_score(value: float) -> int:
    rounded = int(round_half_away(value, places=0))
    return min(MAX_SCORE, max(MIN_SCORE, rounded))


def calculate_score(
    avg_moisture: Optional[float] = 0,
    avg_weight: Optional[float] = 0,
    entries: Optional[int] = 0,
) -> int:
    """Apply the rubric; missing statistics count as zero."""
    moisture = avg_moisture or 0
    weight = avg_weight or 0
    samples = entries or 0

    score: float = BASE_SCORE

    if moisture > HIGH_MOISTURE:
        score -= HIGH_MOISTURE_PENALTY
    elif moisture > ELEVATED_MOISTURE:
        score -= ELEVATED_MOISTURE_PENALTY

    if weight > HEAVY_WEIGHT_KG:
        score -= HEAVY_WEIGHT_PENALTY
    elif weight > ELEVATED_WEIGHT_KG:
        score -= ELEVATED_WEIGHT_PENALTY

    if samples > SAMPLE_BONUS_THRESHOLD:
        score += SAMPLE_BONUS

    return clamp_score(score)


def score_bin(summary: BinSummary) -> ScoredBin:
    score = calculate_score(
        avg_moisture=summary.avg_moisture,
        avg_weight=summary.avg_weight,
        entries=summary.entries,
    )
    return ScoredBin(summary=summary, score=score)


def score_bins(summaries: Iterable[BinSummary]) -> List[ScoredBin]:
    return [score_bin(summary) for summary in summaries]


def rank_bins(scored: Sequence[ScoredBin], limit: int = TOP_LIMIT) -> TopBins:
    """Split scored bins into best and worst lists; ties keep input order."""
    performers = sorted(scored, key=lambda item: item.score, reverse=True)[:limit]
    offenders = sorted(scored, key=lambda item: item.score)[:limit]
    return TopBins(performers=performers, offenders=offenders)
