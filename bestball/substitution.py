"""Decide which player a roster slot counts for in a given week.

A slot holds its original player until a substitution's effective week;
from that week on the substitute is the active player for everything:
stat lookup, team and elimination checks, projections. Point histories are
stitched at that boundary and never re-attributed.
"""
import logging
from typing import AbstractSet, Iterable, List, Optional

from .models import Player, RosterSlot, Substitution, WeekScore

logger = logging.getLogger(__name__)


def active_substitution(slot: RosterSlot) -> Optional[Substitution]:
    if not slot.substitutions:
        return None
    if len(slot.substitutions) > 1:
        logger.warning(
            "Slot %s/%s has %d substitutions; only the first is used",
            slot.owner, slot.slot, len(slot.substitutions),
        )
    return slot.substitutions[0]


def is_substitution_active(slot: RosterSlot, week: int) -> bool:
    sub = active_substitution(slot)
    return sub is not None and week >= sub.effective_week


def active_player(slot: RosterSlot, week: int) -> Player:
    sub = active_substitution(slot)
    if sub is not None and week >= sub.effective_week:
        return sub.substitute
    return slot.player


def active_team(slot: RosterSlot, week: int) -> str:
    player = active_player(slot, week)
    return (player.team or slot.player.team or '').upper()


def is_slot_eliminated(slot: RosterSlot, week: int, eliminated: AbstractSet[str]) -> bool:
    team = active_team(slot, week)
    return bool(team) and team in eliminated


def combined_week_scores(slot: RosterSlot, original_scores: Iterable[WeekScore], substitute_scores: Iterable[WeekScore] = ()) -> List[WeekScore]:
    """Point history for the slot, ordered by week.

    Original-player weeks before the effective week, substitute weeks from it
    on. Both sides are filtered even when the other has no entry for a week.
    """
    sub = active_substitution(slot)
    if sub is None:
        merged = list(original_scores)
    else:
        merged = [s for s in original_scores if s.week < sub.effective_week]
        merged += [s for s in substitute_scores if s.week >= sub.effective_week]
    return sorted(merged, key=lambda s: s.week)


def combined_actual_points(slot: RosterSlot, original_scores: Iterable[WeekScore], substitute_scores: Iterable[WeekScore] = ()) -> float:
    return sum(s.points for s in combined_week_scores(slot, original_scores, substitute_scores))
