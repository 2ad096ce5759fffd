"""Adaptive blending of prop-based and historical projections.

Prop markets and a player's own recent scoring are blended with weights
that move with data quality: more prop lines and fresher lines pull weight
toward the props, a thin scoring history pushes weight away from history.
Everything here is a pure function of its arguments; the current time is
passed in rather than read from the clock.
"""
from dataclasses import dataclass, fields
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from .models import BlendConfigError, Projection, PropLine, WeatherReport, WeekScore
from .props import aggregate_player_props
from .rules import DEFAULT_SCORING_RULES, ScoringRules
from .weather import apply_weather_adjustment

POSITION_BASELINES = {
    'QB': 18.5,
    'RB': 12.0,
    'WR': 11.5,
    'TE': 8.0,
    'K': 7.5,
    'DST': 7.0,
}
DEFAULT_BASELINE = 10.0

# spread between median and the low/high outcomes
POSITION_VARIANCE = {
    'QB': 6.5,
    'RB': 8.0,
    'WR': 9.0,
    'TE': 6.0,
    'K': 4.0,
    'DST': 5.5,
}
CONFIDENCE_RANGE_MULTIPLIER = {'high': 0.8, 'medium': 1.0, 'low': 1.2}


@dataclass(frozen=True)
class BlendConfig:
    base_prop_weight: float = 0.6
    prop_count_bonus: float = 0.05
    max_bonus_props: int = 2
    recency_bonus: float = 0.10
    recency_hours: float = 24.0
    sample_size_penalty: float = 0.15
    max_prop_weight: float = 0.90
    min_prop_weight: float = 0.30
    min_props: int = 2
    min_games: int = 2
    decay: float = 0.8

    def __post_init__(self):
        if not 0 <= self.min_prop_weight <= self.max_prop_weight <= 1:
            raise BlendConfigError("prop weight band must satisfy 0 <= min <= max <= 1")
        if not 0 < self.decay <= 1:
            raise BlendConfigError("decay must be in (0, 1]")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'BlendConfig':
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            if key not in known:
                raise BlendConfigError(f"Unknown blend setting: {key}")
            try:
                kwargs[key] = int(value) if key in ('max_bonus_props', 'min_props', 'min_games') else float(value)
            except (TypeError, ValueError) as e:
                raise BlendConfigError(f"{key}: expected a number, got {value!r}") from e
        return cls(**kwargs)


DEFAULT_BLEND_CONFIG = BlendConfig()


@dataclass(frozen=True)
class ConfidenceScore:
    level: str
    score: int
    factors: Tuple[str, ...] = ()


@dataclass(frozen=True)
class BlendResult:
    points: float
    source: str
    confidence: ConfidenceScore
    prop_weight: float
    historical_weight: float
    used_baseline: bool = False


def position_baseline(position: str) -> float:
    return POSITION_BASELINES.get(position, DEFAULT_BASELINE)


def games_with_score(scores: Iterable[WeekScore]) -> int:
    return sum(1 for s in scores if s.points != 0)


def recency_weighted_average(scores: Sequence[WeekScore], decay: float = 0.8) -> float:
    """Average of weekly points, most recent week weighted 1, then decay**k.

    Ordering is by week number, not by position in the input.
    """
    if not scores:
        return 0.0
    ordered = sorted(scores, key=lambda s: s.week, reverse=True)
    weighted_sum = 0.0
    total_weight = 0.0
    for rank, score in enumerate(ordered):
        weight = decay ** rank
        weighted_sum += score.points * weight
        total_weight += weight
    return weighted_sum / total_weight if total_weight > 0 else 0.0


def _hours_since(ts: Optional[datetime], now: Optional[datetime]) -> Optional[float]:
    if ts is None or now is None:
        return None
    return (now - ts).total_seconds() / 3600.0


def adaptive_weights(prop_count: int, games_played: int, props_updated_at: Optional[datetime], now: Optional[datetime], config: BlendConfig = DEFAULT_BLEND_CONFIG) -> Tuple[float, float]:
    """(prop_weight, historical_weight); always sums to 1."""
    prop_weight = config.base_prop_weight
    if prop_count > config.min_props:
        prop_weight += config.prop_count_bonus * min(prop_count - config.min_props, config.max_bonus_props)
    hours = _hours_since(props_updated_at, now)
    if hours is not None and hours < config.recency_hours:
        prop_weight += config.recency_bonus
    if games_played < config.min_games:
        # thin history, lean on the market
        prop_weight += config.sample_size_penalty
    prop_weight = max(config.min_prop_weight, min(config.max_prop_weight, prop_weight))
    return prop_weight, 1.0 - prop_weight


def confidence_level(score: int) -> str:
    if score >= 70:
        return 'high'
    if score >= 40:
        return 'medium'
    return 'low'


def confidence_score(prop_count: int, games_played: int, props_updated_at: Optional[datetime], has_weather: bool, now: Optional[datetime]) -> ConfidenceScore:
    score = 0
    factors: List[str] = []
    if prop_count >= 4:
        score += 40
        factors.append(f"{prop_count} prop lines")
    elif prop_count >= 2:
        score += 25
        factors.append(f"{prop_count} prop lines")
    elif prop_count == 1:
        score += 15
        factors.append('1 prop line')

    if games_played >= 3:
        score += 30
        factors.append(f"{games_played} playoff games")
    elif games_played >= 2:
        score += 20
        factors.append(f"{games_played} playoff games")
    elif games_played == 1:
        score += 10
        factors.append('1 playoff game')

    # freshness is unknown without a reference time
    hours = _hours_since(props_updated_at, now)
    if hours is not None:
        if hours < 6:
            score += 15
            factors.append('Fresh prop data (<6h)')
        elif hours < 24:
            score += 10
            factors.append('Recent prop data (<24h)')
        else:
            score += 5
            factors.append('Older prop data')

    if has_weather:
        score += 15
        factors.append('Weather adjusted')
    return ConfidenceScore(level=confidence_level(score), score=score, factors=tuple(factors))


def projection_range(median: float, position: str, confidence: str) -> Tuple[float, float, float]:
    variance = POSITION_VARIANCE.get(position, 7.0) * CONFIDENCE_RANGE_MULTIPLIER.get(confidence, 1.0)
    return max(0.0, median - variance), median, median + variance


def blend_projection(
    prop_points: Optional[float],
    prop_count: int,
    props_updated_at: Optional[datetime],
    historical_points: Optional[float],
    games_played: int,
    position: str,
    now: Optional[datetime] = None,
    has_weather: bool = False,
    config: BlendConfig = DEFAULT_BLEND_CONFIG,
) -> BlendResult:
    scored = confidence_score(prop_count, games_played, props_updated_at, has_weather, now)
    props_usable = bool(prop_points) and prop_count >= config.min_props
    history_present = bool(historical_points)
    history_usable = history_present and games_played >= config.min_games

    if not props_usable:
        if not history_present:
            return BlendResult(
                points=position_baseline(position),
                source='historical',
                confidence=ConfidenceScore('low', scored.score, scored.factors + ('Position baseline',)),
                prop_weight=0.0,
                historical_weight=1.0,
                used_baseline=True,
            )
        level = 'medium' if games_played >= config.min_games else 'low'
        return BlendResult(historical_points, 'historical', ConfidenceScore(level, scored.score, scored.factors), 0.0, 1.0)

    if not history_usable:
        level = 'high' if prop_count >= 3 else 'medium'
        return BlendResult(prop_points, 'prop', ConfidenceScore(level, scored.score, scored.factors), 1.0, 0.0)

    prop_weight, historical_weight = adaptive_weights(prop_count, games_played, props_updated_at, now, config)
    points = prop_points * prop_weight + historical_points * historical_weight
    return BlendResult(points, 'blended', scored, prop_weight, historical_weight)


def project_player(
    position: str,
    prop_lines: Iterable[PropLine] = (),
    history: Sequence[WeekScore] = (),
    weather: Optional[WeatherReport] = None,
    now: Optional[datetime] = None,
    rules: ScoringRules = DEFAULT_SCORING_RULES,
    config: BlendConfig = DEFAULT_BLEND_CONFIG,
    estimate_props: bool = False,
) -> Projection:
    agg = aggregate_player_props(prop_lines, position, rules, estimate=estimate_props)
    games = games_with_score(history)
    historical = recency_weighted_average(history, config.decay) if history else None
    prop_points = agg.points if agg.prop_count else None

    blend = blend_projection(
        prop_points,
        agg.prop_count,
        agg.updated_at,
        historical,
        games,
        position,
        now=now,
        has_weather=weather is not None,
        config=config,
    )
    adjusted = apply_weather_adjustment(blend.points, position, weather)
    low, median, high = projection_range(adjusted.points, position, blend.confidence.level)
    return Projection(
        points=adjusted.points,
        source=blend.source,
        confidence=blend.confidence.level,
        confidence_score=blend.confidence.score,
        low=low,
        median=median,
        high=high,
        prop_points=prop_points,
        historical_points=historical if historical else None,
        prop_weight=blend.prop_weight,
        historical_weight=blend.historical_weight,
        prop_count=agg.prop_count,
        games_played=games,
        weather_multiplier=adjusted.multiplier,
        weather_impact=adjusted.impact,
        weather_conditions=adjusted.conditions,
        factors=blend.confidence.factors,
    )
