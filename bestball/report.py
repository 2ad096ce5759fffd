"""Tabular views of evaluated rosters for printing and CSV export.

Points are rounded to two decimals here and nowhere earlier.
"""
from typing import Dict, Iterable, Sequence, Tuple

import pandas as pd

from .models import PointsBreakdown
from .pipeline import OwnerSummary
from .rules import round_points

SLOT_COLUMNS = ['owner', 'slot', 'player', 'active', 'pos', 'team', 'actual', 'projected', 'low', 'high',
                'source', 'confidence', 'ev', 'remaining ev', 'champ %', 'status']
OWNER_COLUMNS = ['rank', 'owner', 'actual', 'best ball', 'projected', 'ev', 'remaining ev', 'total', 'active',
                 'eliminated']
GAME_COLUMNS = ['player', 'team', 'passing', 'rushing', 'receiving', 'kicking', 'defense', 'misc', 'total']


def _status(ev) -> str:
    if ev.eliminated:
        return 'eliminated'
    if ev.week_ev.is_bye:
        return 'bye'
    if ev.substituted:
        return 'substitute'
    return 'active'


def slots_frame(summaries: Sequence[OwnerSummary]) -> pd.DataFrame:
    rows = []
    for summary in summaries:
        for ev in summary.slots:
            proj = ev.projection
            champ = ev.bracket.championship_probability
            rows.append({
                'owner': summary.owner,
                'slot': ev.slot,
                'player': ev.player.name,
                'active': ev.active.name,
                'pos': ev.active.position,
                'team': ev.team,
                'actual': round_points(ev.actual_points),
                'projected': round_points(proj.points),
                'low': round_points(proj.low),
                'high': round_points(proj.high),
                'source': proj.source,
                'confidence': proj.confidence,
                'ev': round_points(ev.expected_value) if ev.expected_value is not None else None,
                'remaining ev': round_points(ev.remaining_ev),
                'champ %': round(champ * 100.0, 1) if champ is not None else None,
                'status': _status(ev),
            })
    return pd.DataFrame(rows, columns=SLOT_COLUMNS)


def owners_frame(summaries: Sequence[OwnerSummary]) -> pd.DataFrame:
    rows = []
    for summary in summaries:
        rows.append({
            'owner': summary.owner,
            'actual': round_points(summary.actual_points),
            'best ball': round_points(summary.best_ball_points),
            'projected': round_points(summary.projected_points),
            'ev': round_points(summary.expected_value),
            'remaining ev': round_points(summary.remaining_ev),
            'total': round_points(summary.total_value),
            'active': summary.active_players,
            'eliminated': summary.eliminated_players,
        })
    df = pd.DataFrame(rows, columns=[c for c in OWNER_COLUMNS if c != 'rank'])
    if df.empty:
        return pd.DataFrame(columns=OWNER_COLUMNS)
    df = df.sort_values('total', ascending=False, kind='stable').reset_index(drop=True)
    df.insert(0, 'rank', range(1, len(df) + 1))
    return df


def game_frame(lines: Iterable[Tuple[str, str, PointsBreakdown]]) -> pd.DataFrame:
    """One row per (name, team, breakdown), highest total first."""
    rows = [_game_row(name, team, breakdown) for name, team, breakdown in lines]
    df = pd.DataFrame(rows, columns=GAME_COLUMNS)
    if df.empty:
        return df
    return df.sort_values('total', ascending=False, kind='stable').reset_index(drop=True)


def _game_row(name: str, team: str, breakdown: PointsBreakdown) -> Dict:
    row = {'player': name, 'team': team}
    row.update({k: round_points(v) for k, v in breakdown.as_dict().items()})
    return row
