"""Turn sportsbook player props into a point-equivalent projection.

Prop lines are read as the market's median outcome for each stat. The
anytime-TD line is a probability, not a count, and is only used for non-QB
positions so it does not double count passing-TD props.
"""
import logging
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, Optional, Tuple

from .models import PropLine
from .rules import DEFAULT_SCORING_RULES, ScoringRules

logger = logging.getLogger(__name__)


class PropType(str, Enum):
    PASS_YARDS = 'PASS_YARDS'
    PASS_TDS = 'PASS_TDS'
    RUSH_YARDS = 'RUSH_YARDS'
    REC_YARDS = 'REC_YARDS'
    RECEPTIONS = 'RECEPTIONS'
    ANYTIME_TD = 'ANYTIME_TD'

    @classmethod
    def parse(cls, name) -> Optional['PropType']:
        if isinstance(name, cls):
            return name
        key = str(name or '').strip()
        if key.upper() in cls.__members__:
            return cls[key.upper()]
        return MARKET_KEYS.get(key.lower())


# odds-provider market keys
MARKET_KEYS = {
    'player_pass_yds': PropType.PASS_YARDS,
    'player_pass_tds': PropType.PASS_TDS,
    'player_rush_yds': PropType.RUSH_YARDS,
    'player_reception_yds': PropType.REC_YARDS,
    'player_receptions': PropType.RECEPTIONS,
    'player_anytime_td': PropType.ANYTIME_TD,
}


@dataclass(frozen=True)
class PropProjection:
    pass_yds: Optional[float] = None
    pass_tds: Optional[float] = None
    rush_yds: Optional[float] = None
    rec_yds: Optional[float] = None
    rec: Optional[float] = None
    td_probability: Optional[float] = None


_FIELD_FOR = {
    PropType.PASS_YARDS: 'pass_yds',
    PropType.PASS_TDS: 'pass_tds',
    PropType.RUSH_YARDS: 'rush_yds',
    PropType.REC_YARDS: 'rec_yds',
    PropType.RECEPTIONS: 'rec',
    PropType.ANYTIME_TD: 'td_probability',
}


@dataclass(frozen=True)
class PropAggregate:
    projection: PropProjection
    points: float
    prop_count: int
    updated_at: Optional[datetime] = None


def prop_line_to_points(prop_type, line: float, position: str, rules: ScoringRules = DEFAULT_SCORING_RULES) -> float:
    pt = PropType.parse(prop_type)
    if pt is PropType.PASS_YARDS:
        return line / rules.pass_yards_per_point
    if pt is PropType.PASS_TDS:
        return line * rules.pass_td
    if pt is PropType.RUSH_YARDS:
        return line / rules.rush_yards_per_point
    if pt is PropType.REC_YARDS:
        return line / rules.rec_yards_per_point
    if pt is PropType.RECEPTIONS:
        return line * rules.ppr
    if pt is PropType.ANYTIME_TD and position != 'QB':
        return line * rules.rush_td
    return 0.0


def props_to_points(projection: PropProjection, position: str, rules: ScoringRules = DEFAULT_SCORING_RULES) -> float:
    points = 0.0
    for pt, attr in _FIELD_FOR.items():
        value = getattr(projection, attr)
        if value is not None:
            points += prop_line_to_points(pt, value, position, rules)
    return points


def estimate_missing_props(projection: PropProjection, position: str) -> PropProjection:
    """Fill receptions and TD probability from yardage when the book has none."""
    changes: Dict[str, float] = {}
    if projection.rec_yds is not None and projection.rec is None:
        # ~10 yards per catch
        changes['rec'] = round(projection.rec_yds / 10)
    if projection.td_probability is None:
        if position in ('WR', 'TE') and projection.rec_yds is not None:
            changes['td_probability'] = min(projection.rec_yds / 100, 0.8)
        elif position == 'RB' and projection.rush_yds is not None:
            changes['td_probability'] = min(projection.rush_yds / 70, 0.9)
    return replace(projection, **changes) if changes else projection


def _newest(a: Optional[datetime], b: Optional[datetime]) -> Optional[datetime]:
    if a is None:
        return b
    if b is None:
        return a
    return max(a, b)


def aggregate_player_props(lines: Iterable[PropLine], position: str, rules: ScoringRules = DEFAULT_SCORING_RULES, estimate: bool = False) -> PropAggregate:
    """Collapse a player's prop lines into one projection.

    When a category has several lines the most recently updated one wins, so
    the result does not depend on input order. `prop_count` counts distinct
    categories that actually contribute; estimated values never add to it.
    """
    chosen: Dict[PropType, PropLine] = {}
    for line in lines:
        pt = PropType.parse(line.prop_type)
        if pt is None:
            logger.debug("Ignoring unsupported prop category %r", line.prop_type)
            continue
        current = chosen.get(pt)
        if current is None or _line_sort_key(line) > _line_sort_key(current):
            chosen[pt] = line

    values: Dict[str, float] = {}
    updated_at: Optional[datetime] = None
    used = 0
    for pt, line in chosen.items():
        values[_FIELD_FOR[pt]] = float(line.line)
        updated_at = _newest(updated_at, line.updated_at)
        if pt is not PropType.ANYTIME_TD or position != 'QB':
            used += 1
    projection = PropProjection(**values)
    if estimate:
        projection = estimate_missing_props(projection, position)
    return PropAggregate(
        projection=projection,
        points=props_to_points(projection, position, rules),
        prop_count=used,
        updated_at=updated_at,
    )


def _line_sort_key(line: PropLine) -> Tuple[float, float]:
    ts = line.updated_at.timestamp() if line.updated_at is not None else float('-inf')
    return (ts, float(line.line))


def props_breakdown(projection: PropProjection, position: str, rules: ScoringRules = DEFAULT_SCORING_RULES) -> Dict[str, Tuple[float, float]]:
    """Map each present line to (line value, point contribution)."""
    out: Dict[str, Tuple[float, float]] = {}
    for pt, attr in _FIELD_FOR.items():
        value = getattr(projection, attr)
        if value is None:
            continue
        out[attr] = (value, prop_line_to_points(pt, value, position, rules))
    return out
