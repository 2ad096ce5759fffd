"""League scoring rule set.

A `ScoringRules` value is threaded explicitly into every calculator so that
several leagues can be scored side by side. Banded tables (field goals by
distance, defense points allowed) are stored as ordered `Band` tuples whose
lookup is total over [0, inf).
"""
import json
from bisect import bisect_right
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Sequence, Tuple

from .models import ScoringConfigError


@dataclass(frozen=True)
class Band:
    min_value: float
    points: float


Bands = Tuple[Band, ...]


def _bands(*pairs) -> Bands:
    return tuple(Band(float(mn), float(pts)) for mn, pts in pairs)


def validate_bands(name: str, bands: Sequence[Band]) -> None:
    if not bands:
        raise ScoringConfigError(f"{name}: at least one band is required")
    if bands[0].min_value != 0:
        raise ScoringConfigError(f"{name}: first band must start at 0, got {bands[0].min_value}")
    prev = None
    for b in bands:
        if prev is not None and b.min_value <= prev:
            raise ScoringConfigError(f"{name}: band thresholds must be strictly ascending")
        prev = b.min_value


def band_points(bands: Sequence[Band], value: float) -> float:
    """Points for the single band containing `value`.

    Values below zero (or otherwise unusable) fall into the lowest band.
    """
    if value is None or value != value or value < 0:
        return bands[0].points
    idx = bisect_right([b.min_value for b in bands], value) - 1
    return bands[max(idx, 0)].points


@dataclass(frozen=True)
class ScoringRules:
    # passing
    pass_yards_per_point: float = 30
    pass_td: float = 6
    pass_int: float = -2
    # rushing
    rush_yards_per_point: float = 10
    rush_td: float = 6
    # receiving (half PPR)
    rec_yards_per_point: float = 10
    rec_td: float = 6
    ppr: float = 0.5
    # misc offense
    two_pt_conv: float = 2
    fumble_lost: float = -2
    return_td: float = 6
    # kicking
    xp_made: float = 1
    xp_miss: float = -1
    fg_made_bands: Bands = field(default_factory=lambda: _bands((0, 3), (20, 3), (30, 3), (40, 4), (50, 5)))
    # only misses under 40 yards are penalized
    fg_missed_bands: Bands = field(default_factory=lambda: _bands((0, -1), (40, 0)))
    # defense / special teams
    sack: float = 1
    def_int: float = 2
    fum_rec: float = 2
    dst_td: float = 6
    safety: float = 4
    block: float = 2
    points_allowed_bands: Bands = field(default_factory=lambda: _bands(
        (0, 10), (1, 7), (7, 4), (14, 1), (21, 0), (28, -1), (35, -3)
    ))

    def __post_init__(self):
        for divisor in ('pass_yards_per_point', 'rush_yards_per_point', 'rec_yards_per_point'):
            if getattr(self, divisor) <= 0:
                raise ScoringConfigError(f"{divisor} must be positive")
        validate_bands('fg_made_bands', self.fg_made_bands)
        validate_bands('fg_missed_bands', self.fg_missed_bands)
        validate_bands('points_allowed_bands', self.points_allowed_bands)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'ScoringRules':
        """Build rules from a JSON-style mapping layered over the defaults.

        Accepts field names, the camelCase names used by the web app
        (`passYardsPerPoint`, `fg40_49`, `pa7_13`, ...) and bands as lists of
        `[min, points]` pairs.
        """
        base = cls()
        scalars: Dict[str, Any] = {}
        band_overrides: Dict[str, Dict[float, float]] = {}
        band_fields = {'fg_made_bands', 'fg_missed_bands', 'points_allowed_bands'}
        known = {f.name for f in fields(cls)}
        for key, value in data.items():
            if key in band_fields:
                try:
                    scalars[key] = _bands(*[(p[0], p[1]) for p in value])
                except (TypeError, IndexError, ValueError) as e:
                    raise ScoringConfigError(f"{key}: expected [[min, points], ...]: {e}") from e
            elif key in known:
                scalars[key] = _to_float(key, value)
            elif key in CAMEL_KEYS:
                scalars[CAMEL_KEYS[key]] = _to_float(key, value)
            elif key in BAND_KEYS:
                band_name, mn = BAND_KEYS[key]
                band_overrides.setdefault(band_name, {})[mn] = _to_float(key, value)
            else:
                raise ScoringConfigError(f"Unknown scoring rule: {key}")
        for band_name, points_by_min in band_overrides.items():
            current = scalars.get(band_name, getattr(base, band_name))
            merged = {b.min_value: b.points for b in current}
            merged.update(points_by_min)
            scalars[band_name] = _bands(*sorted(merged.items()))
        return replace(base, **scalars)

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, tuple):
                out[f.name] = [[b.min_value, b.points] for b in value]
            else:
                out[f.name] = value
        return out


def _to_float(key: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ScoringConfigError(f"{key}: expected a number, got {value!r}") from e


CAMEL_KEYS = {
    'passYardsPerPoint': 'pass_yards_per_point',
    'passTd': 'pass_td',
    'passInt': 'pass_int',
    'rushYardsPerPoint': 'rush_yards_per_point',
    'rushTd': 'rush_td',
    'recYardsPerPoint': 'rec_yards_per_point',
    'recTd': 'rec_td',
    'twoPtConv': 'two_pt_conv',
    'fumbleLost': 'fumble_lost',
    'returnTd': 'return_td',
    'xpMade': 'xp_made',
    'xpMiss': 'xp_miss',
    'defInt': 'def_int',
    'fumRec': 'fum_rec',
    'dstTd': 'dst_td',
}

# flat per-band keys -> (band table, lower bound)
BAND_KEYS = {
    'fg0_19': ('fg_made_bands', 0.0),
    'fg20_29': ('fg_made_bands', 20.0),
    'fg30_39': ('fg_made_bands', 30.0),
    'fg40_49': ('fg_made_bands', 40.0),
    'fg50Plus': ('fg_made_bands', 50.0),
    'fgMiss0_39': ('fg_missed_bands', 0.0),
    'pa0': ('points_allowed_bands', 0.0),
    'pa1_6': ('points_allowed_bands', 1.0),
    'pa7_13': ('points_allowed_bands', 7.0),
    'pa14_20': ('points_allowed_bands', 14.0),
    'pa21_27': ('points_allowed_bands', 21.0),
    'pa28_34': ('points_allowed_bands', 28.0),
    'pa35Plus': ('points_allowed_bands', 35.0),
}


DEFAULT_SCORING_RULES = ScoringRules()


def load_scoring(path: str) -> ScoringRules:
    j = json.loads(Path(path).read_text(encoding='utf-8'))
    if not isinstance(j, dict):
        raise ScoringConfigError(f"{path}: scoring file must hold a JSON object")
    return ScoringRules.from_dict(j)


def field_goal_points(distance: float, made: bool, rules: ScoringRules = DEFAULT_SCORING_RULES) -> float:
    return band_points(rules.fg_made_bands if made else rules.fg_missed_bands, distance)


def points_allowed_points(points_allowed: float, rules: ScoringRules = DEFAULT_SCORING_RULES) -> float:
    return band_points(rules.points_allowed_bands, points_allowed)


def round_points(points: float) -> float:
    return round(points, 2)
