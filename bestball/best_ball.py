"""Best-ball lineups: each week the highest-scoring legal lineup counts.

Starters are picked greedily by week points: the fixed position slots
first, then FLEX from whatever RB/WR/TE is left.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Sequence

from .bracket import PLAYOFF_WEEKS
from .models import Player, WeekScore

FLEX_ELIGIBLE = ('RB', 'WR', 'TE')
# (slot, position) in fill order; FLEX is handled after these
FIXED_SLOTS = (
    ('QB', 'QB'),
    ('RB1', 'RB'),
    ('RB2', 'RB'),
    ('WR1', 'WR'),
    ('WR2', 'WR'),
    ('TE', 'TE'),
    ('K', 'K'),
    ('DST', 'DST'),
)


@dataclass
class LineupCandidate:
    player: Player
    points_by_week: Dict[int, float] = field(default_factory=dict)

    @classmethod
    def from_scores(cls, player: Player, scores: Sequence[WeekScore]) -> 'LineupCandidate':
        points: Dict[int, float] = {}
        for s in scores:
            points[s.week] = points.get(s.week, 0.0) + s.points
        return cls(player=player, points_by_week=points)

    def week_points(self, week: int) -> float:
        return self.points_by_week.get(week, 0.0)


@dataclass
class Lineup:
    week: int
    starters: Dict[str, LineupCandidate] = field(default_factory=dict)
    bench: List[LineupCandidate] = field(default_factory=list)

    @property
    def total_points(self) -> float:
        return sum(c.week_points(self.week) for c in self.starters.values())


def best_ball_lineup(players: Sequence[LineupCandidate], week: int) -> Lineup:
    # stable sort keeps roster order among equal scores
    ranked = sorted(players, key=lambda c: c.week_points(week), reverse=True)
    lineup = Lineup(week=week)
    used = set()
    for slot, position in FIXED_SLOTS:
        for idx, cand in enumerate(ranked):
            if idx not in used and cand.player.position == position:
                lineup.starters[slot] = cand
                used.add(idx)
                break
    for idx, cand in enumerate(ranked):
        if idx not in used and cand.player.position in FLEX_ELIGIBLE:
            lineup.starters['FLEX'] = cand
            used.add(idx)
            break
    lineup.bench = [c for idx, c in enumerate(ranked) if idx not in used]
    return lineup


def season_best_ball_points(players: Sequence[LineupCandidate], weeks: Sequence[int] = PLAYOFF_WEEKS) -> Dict[int, float]:
    """Best-ball total per week; sum the values for the season total."""
    return {week: best_ball_lineup(players, week).total_points for week in weeks}
