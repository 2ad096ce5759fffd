from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

POSITIONS = ('QB', 'RB', 'WR', 'TE', 'K', 'DST')
ROSTER_SLOTS = ('QB', 'RB1', 'RB2', 'WR1', 'WR2', 'TE', 'FLEX', 'K', 'DST')


class BestBallError(Exception):
    pass


class ScoringConfigError(BestBallError):
    pass


class BlendConfigError(BestBallError):
    pass


@dataclass(frozen=True)
class FieldGoal:
    distance: int
    made: bool


@dataclass
class RawStatLine:
    """Accumulated per-game counts for one player.

    Built additively while scanning box-score tables and scoring plays;
    treat as read-only once the extractor returns it.
    """
    name: str
    espn_id: Optional[str] = None
    team: str = ''
    pass_yds: float = 0.0
    pass_tds: float = 0.0
    pass_int: float = 0.0
    rush_yds: float = 0.0
    rush_tds: float = 0.0
    rec_yds: float = 0.0
    rec_tds: float = 0.0
    rec: float = 0.0
    fum_lost: float = 0.0
    xp_made: float = 0.0
    xp_missed: float = 0.0
    two_pt: float = 0.0
    return_tds: float = 0.0
    field_goals: List[FieldGoal] = field(default_factory=list)


@dataclass
class RawDefenseLine:
    team_name: str
    abbreviation: str
    sacks: float = 0.0
    interceptions: float = 0.0
    fum_rec: float = 0.0
    def_tds: float = 0.0
    safeties: float = 0.0
    blocked_kicks: float = 0.0
    points_allowed: int = 0


@dataclass(frozen=True)
class PointsBreakdown:
    passing: float = 0.0
    rushing: float = 0.0
    receiving: float = 0.0
    kicking: float = 0.0
    defense: float = 0.0
    misc: float = 0.0

    @property
    def total(self) -> float:
        return self.passing + self.rushing + self.receiving + self.kicking + self.defense + self.misc

    def as_dict(self) -> Dict[str, float]:
        return {
            'passing': self.passing,
            'rushing': self.rushing,
            'receiving': self.receiving,
            'kicking': self.kicking,
            'defense': self.defense,
            'misc': self.misc,
            'total': self.total,
        }


@dataclass(frozen=True)
class Player:
    id: str
    name: str
    position: str
    team: Optional[str] = None


@dataclass(frozen=True)
class Substitution:
    effective_week: int
    substitute: Player
    reason: str = ''


@dataclass
class RosterSlot:
    owner: str
    slot: str
    player: Player
    # upstream stores may hand back more than one; only the first is honored
    substitutions: List[Substitution] = field(default_factory=list)


@dataclass(frozen=True)
class WeekScore:
    player_id: str
    week: int
    points: float
    breakdown: Optional[Dict[str, float]] = None


@dataclass(frozen=True)
class PropLine:
    player_id: str
    prop_type: str
    line: float
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class WeatherReport:
    temperature: float
    wind_speed: float
    precipitation: float = 0.0
    condition: str = ''
    is_dome: bool = False
    severity: Optional[str] = None


@dataclass(frozen=True)
class Projection:
    points: float
    source: str
    confidence: str
    confidence_score: int
    low: float
    median: float
    high: float
    prop_points: Optional[float] = None
    historical_points: Optional[float] = None
    prop_weight: float = 0.0
    historical_weight: float = 0.0
    prop_count: int = 0
    games_played: int = 0
    weather_multiplier: float = 1.0
    weather_impact: str = 'none'
    weather_conditions: Optional[str] = None
    factors: Tuple[str, ...] = ()
