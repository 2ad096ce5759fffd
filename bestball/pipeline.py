"""Per-slot and per-owner evaluation.

Everything the engine needs arrives in a LeagueContext: scores and prop
lines keyed by player id, weather keyed by team, plus the bracket state.
Evaluating a slot resolves the active player for the context week, adds
up actual points across the substitution boundary, projects the active
player and weighs that projection by the team's chances. Later rounds
follow whoever holds the slot in that round, so a substitution that takes
effect mid-bracket switches team and projection at its effective week.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import AbstractSet, Dict, List, Mapping, Optional, Sequence

from .best_ball import LineupCandidate, season_best_ball_points
from .bracket import BracketProjection, WeekEV, WinProbabilities, remaining_ev, single_week_ev, weeks_from
from .models import Player, Projection, PropLine, RosterSlot, WeatherReport, WeekScore
from .projections import DEFAULT_BLEND_CONFIG, BlendConfig, project_player
from .rules import DEFAULT_SCORING_RULES, ScoringRules
from .substitution import (
    active_player,
    active_substitution,
    active_team,
    combined_actual_points,
    combined_week_scores,
    is_slot_eliminated,
    is_substitution_active,
)

logger = logging.getLogger(__name__)


@dataclass
class LeagueContext:
    week: int
    rules: ScoringRules = DEFAULT_SCORING_RULES
    config: BlendConfig = DEFAULT_BLEND_CONFIG
    now: Optional[datetime] = None
    eliminated: AbstractSet[str] = frozenset()
    bye_teams: AbstractSet[str] = frozenset()
    win_probs: WinProbabilities = field(default_factory=dict)
    scores: Mapping[str, Sequence[WeekScore]] = field(default_factory=dict)
    props: Mapping[str, Sequence[PropLine]] = field(default_factory=dict)
    weather: Mapping[str, WeatherReport] = field(default_factory=dict)
    estimate_props: bool = False

    def scores_for(self, player_id: str) -> Sequence[WeekScore]:
        return self.scores.get(player_id, ())


@dataclass
class SlotEvaluation:
    owner: str
    slot: str
    player: Player
    active: Player
    team: str
    substituted: bool
    eliminated: bool
    actual_points: float
    week_scores: List[WeekScore]
    projection: Projection
    week_ev: WeekEV
    bracket: BracketProjection

    @property
    def expected_value(self) -> Optional[float]:
        return self.week_ev.ev

    @property
    def remaining_ev(self) -> float:
        return self.bracket.total_remaining_ev


@dataclass
class OwnerSummary:
    owner: str
    slots: List[SlotEvaluation] = field(default_factory=list)
    actual_points: float = 0.0
    projected_points: float = 0.0
    expected_value: float = 0.0
    remaining_ev: float = 0.0
    best_ball_points: float = 0.0
    active_players: int = 0
    eliminated_players: int = 0

    @property
    def total_value(self) -> float:
        return self.actual_points + self.remaining_ev


def _project(player: Player, team: str, ctx: LeagueContext) -> Projection:
    # the player's own completed weeks drive the projection
    history = [s for s in ctx.scores_for(player.id) if s.week < ctx.week]
    return project_player(
        player.position,
        ctx.props.get(player.id, ()),
        history,
        weather=ctx.weather.get(team),
        now=ctx.now,
        rules=ctx.rules,
        config=ctx.config,
        estimate_props=ctx.estimate_props,
    )


def _bracket(slot: RosterSlot, ctx: LeagueContext, player: Player, projection: Projection) -> BracketProjection:
    """Remaining EV with each round credited to whoever holds the slot that week."""
    weeks = weeks_from(ctx.week)
    projections = {player.id: projection}
    teams: Dict[int, str] = {}
    points: Dict[int, float] = {}
    for week in weeks:
        holder = active_player(slot, week)
        teams[week] = active_team(slot, week)
        if holder.id not in projections:
            projections[holder.id] = _project(holder, teams[week], ctx)
        points[week] = projections[holder.id].points
    return remaining_ev(points, teams, weeks, ctx.win_probs, ctx.eliminated, ctx.bye_teams)


def evaluate_slot(slot: RosterSlot, ctx: LeagueContext) -> SlotEvaluation:
    player = active_player(slot, ctx.week)
    team = active_team(slot, ctx.week)
    original_scores = ctx.scores_for(slot.player.id)
    sub = active_substitution(slot)
    sub_scores = ctx.scores_for(sub.substitute.id) if sub is not None else ()
    week_scores = combined_week_scores(slot, original_scores, sub_scores)
    actual = combined_actual_points(slot, original_scores, sub_scores)

    projection = _project(player, team, ctx)
    eliminated = is_slot_eliminated(slot, ctx.week, ctx.eliminated)
    week_ev = single_week_ev(projection.points, team, ctx.week, ctx.win_probs, ctx.eliminated, ctx.bye_teams)
    bracket = _bracket(slot, ctx, player, projection)
    logger.debug("%s/%s -> %s (%s) proj=%.2f ev=%s", slot.owner, slot.slot, player.name, team, projection.points, week_ev.ev)
    return SlotEvaluation(
        owner=slot.owner,
        slot=slot.slot,
        player=slot.player,
        active=player,
        team=team,
        substituted=is_substitution_active(slot, ctx.week),
        eliminated=eliminated,
        actual_points=actual,
        week_scores=week_scores,
        projection=projection,
        week_ev=week_ev,
        bracket=bracket,
    )


def evaluate_owner(owner: str, slots: Sequence[RosterSlot], ctx: LeagueContext) -> OwnerSummary:
    summary = OwnerSummary(owner=owner)
    candidates: List[LineupCandidate] = []
    for slot in slots:
        ev = evaluate_slot(slot, ctx)
        summary.slots.append(ev)
        summary.actual_points += ev.actual_points
        summary.remaining_ev += ev.remaining_ev
        if ev.eliminated:
            summary.eliminated_players += 1
        else:
            summary.active_players += 1
            summary.projected_points += ev.projection.points
        if ev.expected_value is not None:
            summary.expected_value += ev.expected_value
        candidates.append(LineupCandidate.from_scores(slot.player, ev.week_scores))
    summary.best_ball_points = sum(season_best_ball_points(candidates).values())
    return summary


def rank_owners(summaries: Sequence[OwnerSummary]) -> List[OwnerSummary]:
    """Highest actual + remaining EV first; ties keep input order."""
    return sorted(summaries, key=lambda s: s.total_value, reverse=True)


def evaluate_league(rosters: Mapping[str, Sequence[RosterSlot]], ctx: LeagueContext) -> List[OwnerSummary]:
    return rank_owners([evaluate_owner(owner, slots, ctx) for owner, slots in rosters.items()])


def scores_by_player(scores: Sequence[WeekScore]) -> Dict[str, List[WeekScore]]:
    out: Dict[str, List[WeekScore]] = {}
    for s in scores:
        out.setdefault(s.player_id, []).append(s)
    return out
