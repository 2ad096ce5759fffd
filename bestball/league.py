"""Load a league snapshot (rosters, scores, props, bracket state) from JSON.

The document is plain data produced by whatever syncs the league; see
``tests/fixtures/league.json`` for the shape. Unknown top-level keys are
ignored, missing sections are empty.
"""
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from .box_score import BoxScore, unique_defenses
from .bracket import current_playoff_week
from .models import Player, PropLine, RawDefenseLine, RosterSlot, Substitution, WeatherReport, WeekScore
from .name_matcher import match_entity
from .odds import parse_game_odds, win_probabilities
from .pipeline import LeagueContext
from .projections import DEFAULT_BLEND_CONFIG, BlendConfig
from .rules import DEFAULT_SCORING_RULES, ScoringRules
from .scoring import ScoringEngine

logger = logging.getLogger(__name__)


@dataclass
class League:
    players: Dict[str, Player] = field(default_factory=dict)
    rosters: Dict[str, List[RosterSlot]] = field(default_factory=dict)
    scores: Dict[str, List[WeekScore]] = field(default_factory=dict)
    props: Dict[str, List[PropLine]] = field(default_factory=dict)
    weather: Dict[str, WeatherReport] = field(default_factory=dict)
    win_probs: Dict[str, Dict[int, float]] = field(default_factory=dict)
    eliminated: set = field(default_factory=set)
    bye_teams: set = field(default_factory=set)
    week: Optional[int] = None
    now: Optional[datetime] = None
    rules: ScoringRules = DEFAULT_SCORING_RULES
    config: BlendConfig = DEFAULT_BLEND_CONFIG
    estimate_props: bool = False

    def context(self, week: Optional[int] = None, now: Optional[datetime] = None, rules: Optional[ScoringRules] = None,
                estimate_props: Optional[bool] = None) -> LeagueContext:
        if week is None:
            week = current_playoff_week(len(self.eliminated), override=self.week)
        return LeagueContext(
            week=week,
            rules=rules or self.rules,
            config=self.config,
            now=now or self.now or datetime.now(timezone.utc),
            eliminated=frozenset(self.eliminated),
            bye_teams=frozenset(self.bye_teams),
            win_probs=self.win_probs,
            scores=self.scores,
            props=self.props,
            weather=self.weather,
            estimate_props=self.estimate_props if estimate_props is None else estimate_props,
        )


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """ISO-8601 to an aware datetime; naive values are taken as UTC."""
    if not value:
        return None
    ts = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def _player(p: Mapping[str, Any]) -> Player:
    team = p.get('team')
    return Player(id=str(p['id']), name=p.get('name') or str(p['id']), position=(p.get('position') or '').upper(),
                  team=team.upper() if team else None)


def _weather(raw: Mapping[str, Any]) -> WeatherReport:
    return WeatherReport(
        temperature=float(raw.get('temperature', 60)),
        wind_speed=float(raw.get('wind_speed', 0)),
        precipitation=float(raw.get('precipitation', 0)),
        condition=raw.get('condition') or '',
        is_dome=bool(raw.get('is_dome', False)),
        severity=raw.get('severity'),
    )


def _slot(owner: str, raw: Mapping[str, Any], players: Mapping[str, Player]) -> Optional[RosterSlot]:
    pid = str(raw.get('player'))
    player = players.get(pid)
    if player is None:
        logger.warning("Roster slot %s/%s references unknown player %s", owner, raw.get('slot'), pid)
        return None
    subs = []
    sub = raw.get('substitution')
    if sub:
        substitute = players.get(str(sub.get('player')))
        if substitute is None:
            logger.warning("Substitution for %s/%s references unknown player %s", owner, raw.get('slot'), sub.get('player'))
        else:
            subs.append(Substitution(effective_week=int(sub['effective_week']), substitute=substitute,
                                     reason=sub.get('reason') or ''))
    return RosterSlot(owner=owner, slot=raw.get('slot') or player.position, player=player, substitutions=subs)


def league_from_dict(doc: Mapping[str, Any]) -> League:
    league = League()
    for p in doc.get('players') or []:
        player = _player(p)
        league.players[player.id] = player
        league.scores[player.id] = [
            WeekScore(player_id=player.id, week=int(s['week']), points=float(s.get('points', 0)))
            for s in p.get('scores') or []
        ]
        league.props[player.id] = [
            PropLine(player_id=player.id, prop_type=pl.get('type'), line=float(pl['line']),
                     updated_at=parse_timestamp(pl.get('updated_at')))
            for pl in p.get('props') or []
        ]
    for owner in doc.get('owners') or []:
        name = owner['name']
        slots = [_slot(name, raw, league.players) for raw in owner.get('roster') or []]
        league.rosters[name] = [s for s in slots if s is not None]

    for team, by_week in (doc.get('win_probs') or {}).items():
        league.win_probs.setdefault(team.upper(), {}).update({int(w): float(p) for w, p in by_week.items()})
    for block in doc.get('odds') or []:
        week = int(block['week'])
        for team, by_week in win_probabilities(parse_game_odds(block.get('games') or []), week).items():
            # explicit probabilities win over odds-derived ones
            for w, prob in by_week.items():
                league.win_probs.setdefault(team, {}).setdefault(w, prob)

    league.weather = {team.upper(): _weather(raw) for team, raw in (doc.get('weather') or {}).items()}
    league.eliminated = {t.upper() for t in doc.get('eliminated') or []}
    league.bye_teams = {t.upper() for t in doc.get('bye_teams') or []}
    league.week = int(doc['week']) if doc.get('week') is not None else None
    league.now = parse_timestamp(doc.get('now'))
    league.estimate_props = bool(doc.get('estimate_props', False))
    if doc.get('scoring'):
        league.rules = ScoringRules.from_dict(doc['scoring'])
    if doc.get('blend'):
        league.config = BlendConfig.from_dict(doc['blend'])
    return league


def load_league(path: str) -> League:
    return league_from_dict(json.loads(Path(path).read_text()))


@dataclass
class GameMatch:
    """Box-score lines credited to league player ids."""
    week_scores: List[WeekScore] = field(default_factory=list)
    unmatched: List[str] = field(default_factory=list)

    @property
    def matched(self) -> int:
        return len(self.week_scores)


def _match_defense(line: RawDefenseLine, defenses: Mapping[str, Player]) -> Optional[str]:
    names = {pid: p.name for pid, p in defenses.items()}
    for candidate in (f"{line.abbreviation} DST", line.team_name):
        pid = match_entity(candidate, names)
        if pid is not None:
            return pid
    for pid in sorted(defenses):
        if defenses[pid].team and defenses[pid].team == line.abbreviation.upper():
            return pid
    return None


def match_box_score(box: BoxScore, players: Mapping[str, Player], week: int, engine: ScoringEngine,
                    overrides: Optional[Dict[str, str]] = None) -> GameMatch:
    """Score one game and credit each line to the league player it names.

    Player lines resolve by name against non-defense players; each defense
    resolves by its ``ABBR DST`` key, then its team name, then abbreviation,
    against DST players. A league player is credited at most once.
    """
    offense = {pid: p.name for pid, p in players.items() if p.position != 'DST'}
    defenses = {pid: p for pid, p in players.items() if p.position == 'DST'}
    result = GameMatch()
    credited = set()

    def credit(label, pid, line):
        if pid in credited:
            logger.warning("%s resolves to %s, which is already credited for this game", label, pid)
            pid = None
        if pid is None:
            logger.debug("No league player for %s", label)
            result.unmatched.append(label)
            return
        credited.add(pid)
        points = engine.score(line)
        result.week_scores.append(WeekScore(player_id=pid, week=week, points=points.total, breakdown=points.as_dict()))

    for key in sorted(box.players):
        line = box.players[key]
        credit(line.name, match_entity(line.name, offense, overrides), line)
    for abbr, line in sorted(unique_defenses(box.defenses).items()):
        credit(f"{abbr} DST", _match_defense(line, defenses), line)
    logger.debug("Matched %d of %d lines for week %d", result.matched, result.matched + len(result.unmatched), week)
    return result
