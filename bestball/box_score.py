"""Extract raw per-player and per-defense stat lines from an ESPN game summary.

The summary is the already-parsed JSON document; nothing here touches the
network. Categorized tables give yardage, touchdowns, receptions and extra
points. Field goals and two-point conversions only exist in the scoring-play
text, so they are recovered by pattern matching and credited to players
already seen in the tables.
"""
import logging
import re
from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .models import FieldGoal, RawDefenseLine, RawStatLine
from .name_matcher import name_appears_in_text, normalize_name, simplify_text

logger = logging.getLogger(__name__)


class StatCategory(str, Enum):
    PASSING = 'passing'
    RUSHING = 'rushing'
    RECEIVING = 'receiving'
    KICKING = 'kicking'

    @classmethod
    def parse(cls, name: str) -> Optional['StatCategory']:
        try:
            return cls((name or '').lower())
        except ValueError:
            return None


# exact column label -> RawStatLine field, per category
CATEGORY_COLUMNS: Dict[StatCategory, Dict[str, str]] = {
    StatCategory.PASSING: {'YDS': 'pass_yds', 'TD': 'pass_tds', 'INT': 'pass_int'},
    StatCategory.RUSHING: {'YDS': 'rush_yds', 'TD': 'rush_tds', 'FUM': 'fum_lost'},
    StatCategory.RECEIVING: {'YDS': 'rec_yds', 'TD': 'rec_tds', 'REC': 'rec'},
    # XP is a "made/attempted" compound handled by parse_xp
    StatCategory.KICKING: {},
}

FG_DISTANCE_PATTERNS = (
    re.compile(r'(\d+)[\s-]*(?:y|yard|yds)', re.I),
    re.compile(r'(\d+)\s*FG', re.I),
    re.compile(r'\((\d+)\)'),
)
FG_MISSED = re.compile(r'no good|missed|blocked', re.I)
TWO_POINT_FAILED = re.compile(r'fail|incomplete|no good|intercepted', re.I)
# the conversion attempt is usually a parenthetical after the touchdown text;
# success or failure is read from that clause only
TWO_POINT_CLAUSE = re.compile(r'\(([^()]*(?:two[- ]point|2pt)[^()]*)\)', re.I)


@dataclass
class BoxScore:
    players: Dict[str, RawStatLine] = field(default_factory=dict)
    defenses: Dict[str, RawDefenseLine] = field(default_factory=dict)


def to_number(value: Any) -> float:
    """Leading numeric value of a provider string; absent or junk -> 0."""
    if value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    m = re.match(r'\s*(-?\d+(?:\.\d+)?)', str(value))
    return float(m.group(1)) if m else 0.0


def parse_xp(raw: Any) -> Tuple[int, int]:
    """Split an extra-point cell like "3/3" into (made, missed)."""
    parts = str(raw or '').split('/')
    made = int(to_number(parts[0]))
    attempted = int(to_number(parts[1])) if len(parts) > 1 and parts[1].strip() else made
    return made, max(attempted - made, 0)


def stat_value(stats: List[Any], labels: List[str], target: str) -> float:
    try:
        idx = labels.index(target)
    except ValueError:
        return 0.0
    return to_number(stats[idx]) if idx < len(stats) else 0.0


def _competition(summary: Mapping[str, Any]) -> Mapping[str, Any]:
    comps = ((summary.get('header') or {}).get('competitions') or [])
    return comps[0] if comps else {}


def team_abbreviations(summary: Mapping[str, Any]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for competitor in _competition(summary).get('competitors') or []:
        team = competitor.get('team') or {}
        if competitor.get('id') is not None:
            out[str(competitor['id'])] = team.get('abbreviation') or ''
    return out


def _athlete_name(athlete: Mapping[str, Any]) -> str:
    if athlete.get('firstName'):
        return f"{athlete['firstName']} {athlete.get('lastName') or ''}".strip()
    return athlete.get('displayName') or ''


def _process_category(category: Mapping[str, Any], players: Dict[str, RawStatLine], team: str, kickers: set) -> None:
    cat = StatCategory.parse(category.get('name'))
    if cat is None:
        return
    labels = list(category.get('labels') or [])
    columns = CATEGORY_COLUMNS[cat]
    for entry in category.get('athletes') or []:
        athlete = entry.get('athlete') or {}
        name = _athlete_name(athlete)
        key = normalize_name(name)
        if not key:
            continue
        line = players.get(key)
        if line is None:
            line = RawStatLine(name=name, espn_id=athlete.get('id'), team=team)
            players[key] = line
        stats = list(entry.get('stats') or [])
        for label, attr in columns.items():
            setattr(line, attr, getattr(line, attr) + stat_value(stats, labels, label))
        if cat is StatCategory.KICKING:
            kickers.add(key)
            if 'XP' in labels:
                idx = labels.index('XP')
                made, missed = parse_xp(stats[idx] if idx < len(stats) else None)
                line.xp_made += made
                line.xp_missed += missed


def field_goal_distance(text: str) -> int:
    for pattern in FG_DISTANCE_PATTERNS:
        m = pattern.search(text or '')
        if m:
            return int(m.group(1))
    return 0


def _credited_players(text: str, players: Mapping[str, RawStatLine]) -> List[str]:
    return [key for key in sorted(players) if name_appears_in_text(players[key].name, text)]


def _process_field_goal(text: str, players: Dict[str, RawStatLine], kickers: set) -> None:
    distance = field_goal_distance(text)
    made = not FG_MISSED.search(text)
    matches = _credited_players(text, players)
    if not matches:
        logger.debug("No known kicker found for field goal play: %s", text)
        return
    preferred = [k for k in matches if k in kickers] or matches
    players[preferred[0]].field_goals.append(FieldGoal(distance=distance, made=made))


def _process_two_point(text: str, players: Dict[str, RawStatLine]) -> None:
    m = TWO_POINT_CLAUSE.search(text)
    clause = m.group(1) if m else text
    if TWO_POINT_FAILED.search(clause):
        return
    # every recognized name in the play is credited, scorer included
    for key in _credited_players(text, players):
        players[key].two_pt += 1


def _process_scoring_plays(plays: List[Mapping[str, Any]], players: Dict[str, RawStatLine], kickers: set) -> None:
    for play in plays:
        text = play.get('text') or ''
        play_type = ((play.get('type') or {}).get('text') or '').lower()
        simple = simplify_text(text)
        if 'field goal' in play_type:
            _process_field_goal(text, players, kickers)
        if 'twopoint' in simple or '2pt' in simple:
            _process_two_point(text, players)


def parse_player_stats(summary: Mapping[str, Any]) -> Dict[str, RawStatLine]:
    players: Dict[str, RawStatLine] = {}
    box = summary.get('boxscore') or {}
    sections = box.get('players') or []
    if not sections:
        return players
    abbrevs = team_abbreviations(summary)
    kickers: set = set()
    for section in sections:
        team = abbrevs.get(str((section.get('team') or {}).get('id')), '')
        for category in section.get('statistics') or []:
            _process_category(category, players, team, kickers)
    _process_scoring_plays(summary.get('scoringPlays') or [], players, kickers)
    return players


def parse_defense_stats(summary: Mapping[str, Any]) -> Dict[str, RawDefenseLine]:
    defenses: Dict[str, RawDefenseLine] = {}
    teams = (summary.get('boxscore') or {}).get('teams') or []
    competitors = _competition(summary).get('competitors') or []
    for team_data in teams:
        team = team_data.get('team') or {}
        team_id = team.get('id')
        opponent = next((t for t in teams if (t.get('team') or {}).get('id') != team_id), None)
        opp_stats = {s.get('name'): s.get('displayValue') for s in (opponent or {}).get('statistics') or []}
        own_stats = {s.get('name'): s.get('displayValue') for s in team_data.get('statistics') or []}
        opp_comp = next((c for c in competitors if c.get('id') != team_id), None)
        sacks_raw = str(opp_stats.get('sacksYardsLost') or '0')
        line = RawDefenseLine(
            team_name=team.get('displayName') or '',
            abbreviation=team.get('abbreviation') or '',
            sacks=int(to_number(sacks_raw.split('-')[0])),
            interceptions=int(to_number(opp_stats.get('interceptions'))),
            fum_rec=int(to_number(opp_stats.get('fumblesLost'))),
            def_tds=to_number(own_stats.get('defensiveTouchdowns')),
            safeties=to_number(own_stats.get('safeties')),
            points_allowed=int(to_number(opp_comp.get('score'))) if opp_comp else 0,
        )
        for key in defense_keys(line):
            defenses[key] = line
    return defenses


def defense_keys(line: RawDefenseLine) -> List[str]:
    keys = [normalize_name(line.team_name), normalize_name(line.abbreviation), normalize_name(f"{line.abbreviation} DST")]
    return [k for k in keys if k]


def parse_box_score(summary: Mapping[str, Any]) -> BoxScore:
    return BoxScore(players=parse_player_stats(summary), defenses=parse_defense_stats(summary))


_PLAYER_COUNTERS = ('pass_yds', 'pass_tds', 'pass_int', 'rush_yds', 'rush_tds', 'rec_yds', 'rec_tds',
                    'rec', 'fum_lost', 'xp_made', 'xp_missed', 'two_pt', 'return_tds')


def merge_player_stats(*stat_maps: Mapping[str, RawStatLine]) -> Dict[str, RawStatLine]:
    """Add up player lines from several games, keyed by normalized name."""
    merged: Dict[str, RawStatLine] = {}
    for stat_map in stat_maps:
        for key, line in stat_map.items():
            if key not in merged:
                merged[key] = deepcopy(line)
                continue
            existing = merged[key]
            for attr in _PLAYER_COUNTERS:
                setattr(existing, attr, getattr(existing, attr) + getattr(line, attr))
            existing.field_goals.extend(line.field_goals)
    return merged


def unique_defenses(defenses: Mapping[str, RawDefenseLine]) -> Dict[str, RawDefenseLine]:
    """One entry per defense keyed by abbreviation; the extractor indexes each under several keys."""
    out: Dict[str, RawDefenseLine] = {}
    for line in defenses.values():
        out.setdefault(line.abbreviation or line.team_name, line)
    return out
