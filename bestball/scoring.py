from typing import Dict, Mapping, Union

from .models import PointsBreakdown, RawDefenseLine, RawStatLine
from .rules import DEFAULT_SCORING_RULES, ScoringRules, field_goal_points, points_allowed_points


def calculate_points(stats: RawStatLine, rules: ScoringRules = DEFAULT_SCORING_RULES) -> PointsBreakdown:
    """Fantasy points for one player's raw line, unrounded."""
    passing = (
        stats.pass_yds / rules.pass_yards_per_point
        + stats.pass_tds * rules.pass_td
        + stats.pass_int * rules.pass_int
    )
    rushing = stats.rush_yds / rules.rush_yards_per_point + stats.rush_tds * rules.rush_td
    receiving = (
        stats.rec_yds / rules.rec_yards_per_point
        + stats.rec_tds * rules.rec_td
        + stats.rec * rules.ppr
    )
    kicking = stats.xp_made * rules.xp_made + stats.xp_missed * rules.xp_miss
    for fg in stats.field_goals:
        kicking += field_goal_points(fg.distance, fg.made, rules)
    misc = (
        stats.two_pt * rules.two_pt_conv
        + stats.fum_lost * rules.fumble_lost
        + stats.return_tds * rules.return_td
    )
    return PointsBreakdown(passing=passing, rushing=rushing, receiving=receiving, kicking=kicking, misc=misc)


def calculate_defense_points(stats: RawDefenseLine, rules: ScoringRules = DEFAULT_SCORING_RULES) -> PointsBreakdown:
    defense = (
        stats.sacks * rules.sack
        + stats.interceptions * rules.def_int
        + stats.fum_rec * rules.fum_rec
        + stats.def_tds * rules.dst_td
        + stats.safeties * rules.safety
        + stats.blocked_kicks * rules.block
        + points_allowed_points(stats.points_allowed, rules)
    )
    return PointsBreakdown(defense=defense)


class ScoringEngine:
    def __init__(self, rules: ScoringRules = DEFAULT_SCORING_RULES):
        self.rules = rules

    def score_player(self, stats: RawStatLine) -> PointsBreakdown:
        return calculate_points(stats, self.rules)

    def score_defense(self, stats: RawDefenseLine) -> PointsBreakdown:
        return calculate_defense_points(stats, self.rules)

    def score(self, stats: Union[RawStatLine, RawDefenseLine]) -> PointsBreakdown:
        if isinstance(stats, RawDefenseLine):
            return self.score_defense(stats)
        return self.score_player(stats)

    def score_lines(self, lines: Mapping[str, Union[RawStatLine, RawDefenseLine]]) -> Dict[str, PointsBreakdown]:
        # return mapping key -> breakdown
        return {key: self.score(line) for key, line in lines.items()}

    def score_breakdown(self, stats: Union[RawStatLine, RawDefenseLine]) -> Dict[str, float]:
        """Per-stat contribution, zero entries dropped (used by --explain)."""
        r = self.rules
        contributions: Dict[str, float] = {}
        if isinstance(stats, RawDefenseLine):
            contributions['sacks'] = stats.sacks * r.sack
            contributions['interceptions'] = stats.interceptions * r.def_int
            contributions['fum_rec'] = stats.fum_rec * r.fum_rec
            contributions['def_tds'] = stats.def_tds * r.dst_td
            contributions['safeties'] = stats.safeties * r.safety
            contributions['blocked_kicks'] = stats.blocked_kicks * r.block
            contributions['points_allowed'] = points_allowed_points(stats.points_allowed, r)
        else:
            contributions['pass_yds'] = stats.pass_yds / r.pass_yards_per_point
            contributions['pass_tds'] = stats.pass_tds * r.pass_td
            contributions['pass_int'] = stats.pass_int * r.pass_int
            contributions['rush_yds'] = stats.rush_yds / r.rush_yards_per_point
            contributions['rush_tds'] = stats.rush_tds * r.rush_td
            contributions['rec_yds'] = stats.rec_yds / r.rec_yards_per_point
            contributions['rec_tds'] = stats.rec_tds * r.rec_td
            contributions['rec'] = stats.rec * r.ppr
            contributions['xp_made'] = stats.xp_made * r.xp_made
            contributions['xp_missed'] = stats.xp_missed * r.xp_miss
            contributions['field_goals'] = sum(field_goal_points(fg.distance, fg.made, r) for fg in stats.field_goals)
            contributions['two_pt'] = stats.two_pt * r.two_pt_conv
            contributions['fum_lost'] = stats.fum_lost * r.fumble_lost
            contributions['return_tds'] = stats.return_tds * r.return_td
        return {k: v for k, v in contributions.items() if v}
