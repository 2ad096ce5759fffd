"""Expected value across the remaining playoff bracket.

A player's points only count while their team is alive, so each round's
projection is weighted by the probability the team is still playing:
the product of its win probabilities for every earlier round evaluated.
Win probabilities, the eliminated set and the bye set all come from the
caller.
"""
import logging
from dataclasses import dataclass, field
from typing import AbstractSet, Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from .box_score import to_number

logger = logging.getLogger(__name__)

# no games in week 4 (Pro Bowl break)
PLAYOFF_WEEKS: Tuple[int, ...] = (1, 2, 3, 5)
WEEK_NAMES = {
    1: 'Wild Card',
    2: 'Divisional',
    3: 'Conference',
    5: 'Super Bowl',
}
DEFAULT_WIN_PROBABILITY = 0.5

# eliminated-team count below which each round is still being played
ROUND_THRESHOLDS = ((6, 1), (10, 2), (12, 3))

WinProbabilities = Mapping[str, Mapping[int, float]]
ProjectedPoints = Union[float, Mapping[int, float]]
TeamSchedule = Union[Optional[str], Mapping[int, Optional[str]]]


@dataclass(frozen=True)
class WeekEV:
    week: int
    round_name: str
    projected_points: float
    win_probability: float
    advance_probability: float
    ev: Optional[float]
    is_bye: bool = False
    eliminated: bool = False


@dataclass(frozen=True)
class BracketProjection:
    rounds: List[WeekEV] = field(default_factory=list)
    total_remaining_ev: float = 0.0
    championship_probability: Optional[float] = None


def next_playoff_week(week: int) -> Optional[int]:
    for w in PLAYOFF_WEEKS:
        if w > week:
            return w
    return None


def remaining_weeks(completed: Iterable[int] = ()) -> List[int]:
    done = set(completed)
    return [w for w in PLAYOFF_WEEKS if w not in done]


def weeks_from(week: int) -> List[int]:
    return [w for w in PLAYOFF_WEEKS if w >= week]


def current_playoff_week(eliminated_count: int, override: Optional[int] = None) -> int:
    """Round currently in progress, inferred from how many teams are out."""
    if override is not None:
        return override
    for threshold, week in ROUND_THRESHOLDS:
        if eliminated_count < threshold:
            return week
    return PLAYOFF_WEEKS[-1]


def is_bye_round(team: Optional[str], week: int, bye_teams: AbstractSet[str]) -> bool:
    # top seeds skip the Wild Card round only
    return week == PLAYOFF_WEEKS[0] and bool(team) and team.upper() in bye_teams


def win_probability_for(team: Optional[str], week: int, win_probs: WinProbabilities) -> float:
    if not team:
        return DEFAULT_WIN_PROBABILITY
    prob = win_probs.get(team.upper(), {}).get(week)
    if prob is None:
        return DEFAULT_WIN_PROBABILITY
    return min(1.0, max(0.0, float(prob)))


def _points_for_week(projected: ProjectedPoints, week: int) -> float:
    if isinstance(projected, Mapping):
        return float(projected.get(week, 0.0) or 0.0)
    return float(projected or 0.0)


def single_week_ev(
    projected: float,
    team: Optional[str],
    week: int,
    win_probs: WinProbabilities,
    eliminated: AbstractSet[str] = frozenset(),
    bye_teams: AbstractSet[str] = frozenset(),
) -> WeekEV:
    name = WEEK_NAMES.get(week, f'Week {week}')
    if team and team.upper() in eliminated:
        return WeekEV(week, name, 0.0, 0.0, 0.0, None, eliminated=True)
    if is_bye_round(team, week, bye_teams):
        return WeekEV(week, name, 0.0, 1.0, 1.0, 0.0, is_bye=True)
    prob = win_probability_for(team, week, win_probs)
    return WeekEV(week, name, projected, prob, prob, projected * prob)


def _team_for_week(team: TeamSchedule, week: int) -> Optional[str]:
    if isinstance(team, Mapping):
        return team.get(week)
    return team


def _advance_probability(team: Optional[str], week: int, weeks: Sequence[int], win_probs: WinProbabilities, bye_teams: AbstractSet[str]) -> float:
    """Probability `team` is still playing in `week`: its wins in every round up to it."""
    prob = 1.0
    for w in weeks:
        if w > week:
            break
        if not is_bye_round(team, w, bye_teams):
            prob *= win_probability_for(team, w, win_probs)
    return prob


def remaining_ev(
    projected: ProjectedPoints,
    team: TeamSchedule,
    weeks: Sequence[int],
    win_probs: WinProbabilities,
    eliminated: AbstractSet[str] = frozenset(),
    bye_teams: AbstractSet[str] = frozenset(),
) -> BracketProjection:
    """EV over `weeks`, compounding the advance probability round by round.

    `team` is one team for every round or a week -> team mapping when the
    slot changes hands mid-bracket; each round then compounds the win
    probabilities of the team playing that round. A Wild Card bye
    contributes nothing and leaves the running probability untouched. A
    round whose team is eliminated is zero, and championship probability is
    None when the final round's team is out.
    """
    ordered = sorted(weeks)
    total = 0.0
    rounds: List[WeekEV] = []
    for week in ordered:
        name = WEEK_NAMES.get(week, f'Week {week}')
        week_team = _team_for_week(team, week)
        if week_team and week_team.upper() in eliminated:
            rounds.append(WeekEV(week, name, 0.0, 0.0, 0.0, 0.0, eliminated=True))
            continue
        advance = _advance_probability(week_team, week, ordered, win_probs, bye_teams)
        if is_bye_round(week_team, week, bye_teams):
            rounds.append(WeekEV(week, name, 0.0, 1.0, advance, 0.0, is_bye=True))
            continue
        points = _points_for_week(projected, week)
        prob = win_probability_for(week_team, week, win_probs)
        week_ev = points * advance
        rounds.append(WeekEV(week, name, points, prob, advance, week_ev))
        total += week_ev

    if not rounds or rounds[-1].eliminated:
        championship = None
    else:
        championship = rounds[-1].advance_probability
    return BracketProjection(rounds=rounds, total_remaining_ev=total, championship_probability=championship)


def _completed(event: Mapping[str, Any]) -> bool:
    status = event.get('status') or {}
    return bool((status.get('type') or {}).get('completed'))


def eliminated_teams(events: Iterable[Mapping[str, Any]]) -> set:
    """Losers of completed scoreboard games; a tie eliminates nobody."""
    out = set()
    for event in events:
        if not _completed(event):
            continue
        competitions = event.get('competitions') or []
        if not competitions:
            continue
        competitors = competitions[0].get('competitors') or []
        if len(competitors) != 2:
            logger.debug("Skipping event %s with %d competitors", event.get('id'), len(competitors))
            continue
        first, second = competitors
        s1 = to_number(first.get('score'))
        s2 = to_number(second.get('score'))
        if s1 > s2:
            loser = second
        elif s2 > s1:
            loser = first
        else:
            continue
        abbr = ((loser.get('team') or {}).get('abbreviation') or '').upper()
        if abbr:
            out.add(abbr)
    return out
