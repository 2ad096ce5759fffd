"""Moneyline odds to team win probabilities.

Odds payloads are already-fetched h2h market documents (home_team,
away_team, bookmakers[].markets[].outcomes[]); this module only converts.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

TEAM_ABBREVIATIONS = {
    'Arizona Cardinals': 'ARI',
    'Atlanta Falcons': 'ATL',
    'Baltimore Ravens': 'BAL',
    'Buffalo Bills': 'BUF',
    'Carolina Panthers': 'CAR',
    'Chicago Bears': 'CHI',
    'Cincinnati Bengals': 'CIN',
    'Cleveland Browns': 'CLE',
    'Dallas Cowboys': 'DAL',
    'Denver Broncos': 'DEN',
    'Detroit Lions': 'DET',
    'Green Bay Packers': 'GB',
    'Houston Texans': 'HOU',
    'Indianapolis Colts': 'IND',
    'Jacksonville Jaguars': 'JAX',
    'Kansas City Chiefs': 'KC',
    'Las Vegas Raiders': 'LV',
    'Los Angeles Chargers': 'LAC',
    'Los Angeles Rams': 'LAR',
    'Miami Dolphins': 'MIA',
    'Minnesota Vikings': 'MIN',
    'New England Patriots': 'NE',
    'New Orleans Saints': 'NO',
    'New York Giants': 'NYG',
    'New York Jets': 'NYJ',
    'Philadelphia Eagles': 'PHI',
    'Pittsburgh Steelers': 'PIT',
    'San Francisco 49ers': 'SF',
    'Seattle Seahawks': 'SEA',
    'Tampa Bay Buccaneers': 'TB',
    'Tennessee Titans': 'TEN',
    'Washington Commanders': 'WAS',
}
_KNOWN_ABBREVIATIONS = set(TEAM_ABBREVIATIONS.values())
PREFERRED_BOOKS = ('draftkings', 'fanduel')


@dataclass(frozen=True)
class GameOdds:
    home_team: str
    away_team: str
    home_win_prob: float
    away_win_prob: float
    home_moneyline: float
    away_moneyline: float


def moneyline_to_probability(odds: float) -> float:
    """Implied probability of American odds (vig included)."""
    if odds < 0:
        return abs(odds) / (abs(odds) + 100)
    return 100 / (odds + 100)


def remove_vig(home_prob: float, away_prob: float) -> Tuple[float, float]:
    total = home_prob + away_prob
    if total <= 0:
        return 0.5, 0.5
    return home_prob / total, away_prob / total


def team_abbreviation(name: str) -> Optional[str]:
    if not name:
        return None
    if name in TEAM_ABBREVIATIONS:
        return TEAM_ABBREVIATIONS[name]
    if name.upper() in _KNOWN_ABBREVIATIONS:
        return name.upper()
    lowered = name.lower()
    # fall back to the nickname ("Chiefs", "49ers")
    for full, abbr in TEAM_ABBREVIATIONS.items():
        if full.split(' ')[-1].lower() in lowered:
            return abbr
    return None


def _pick_bookmaker(bookmakers: List[Mapping[str, Any]]) -> Optional[Mapping[str, Any]]:
    for book in bookmakers:
        if book.get('key') in PREFERRED_BOOKS:
            return book
    return bookmakers[0] if bookmakers else None


def parse_game_odds(games: Iterable[Mapping[str, Any]]) -> List[GameOdds]:
    out: List[GameOdds] = []
    for game in games:
        book = _pick_bookmaker(game.get('bookmakers') or [])
        if book is None:
            continue
        market = next((m for m in book.get('markets') or [] if m.get('key') == 'h2h'), None)
        if market is None:
            continue
        outcomes = {o.get('name'): o.get('price') for o in market.get('outcomes') or []}
        home_name, away_name = game.get('home_team'), game.get('away_team')
        home_price, away_price = outcomes.get(home_name), outcomes.get(away_name)
        home, away = team_abbreviation(home_name), team_abbreviation(away_name)
        if home_price is None or away_price is None or not home or not away:
            logger.debug("Skipping odds for %s @ %s", away_name, home_name)
            continue
        home_prob, away_prob = remove_vig(moneyline_to_probability(home_price), moneyline_to_probability(away_price))
        out.append(GameOdds(home, away, home_prob, away_prob, float(home_price), float(away_price)))
    return out


def win_probabilities(odds: Iterable[GameOdds], week: int) -> Dict[str, Dict[int, float]]:
    probs: Dict[str, Dict[int, float]] = {}
    for game in odds:
        probs.setdefault(game.home_team, {})[week] = game.home_win_prob
        probs.setdefault(game.away_team, {})[week] = game.away_win_prob
    return probs
