import re
from typing import Dict, Iterable, Mapping, Optional

from rapidfuzz import fuzz

_NON_ALNUM_SPACE = re.compile(r'[^a-z0-9 ]')
_NON_ALNUM = re.compile(r'[^a-z0-9]')
_WS = re.compile(r'\s+')
_SUFFIXES = {'jr', 'sr', 'ii', 'iii', 'iv', 'v'}


def normalize_name(name: str) -> str:
    if not name:
        return ''
    lowered = str(name).lower().replace('\t', ' ').replace('\n', ' ')
    return _WS.sub(' ', _NON_ALNUM_SPACE.sub('', lowered)).strip()


def last_name(name: str) -> str:
    tokens = normalize_name(name).split()
    while len(tokens) > 1 and tokens[-1] in _SUFFIXES:
        tokens.pop()
    return tokens[-1] if tokens else ''


def simplify_text(text: str) -> str:
    return _NON_ALNUM.sub('', (text or '').lower())


def name_appears_in_text(player_name: str, text: str) -> bool:
    """True when the player's last name shows up in free text.

    Short last names (two letters or fewer) never match; they hit too many
    unrelated words once spaces are stripped.
    """
    last = last_name(player_name)
    return len(last) > 2 and last in simplify_text(text)


def _suffix_match(norm: str, cand_map: Mapping[str, str]) -> Optional[str]:
    # last name must be contained in the candidate and the first initial must agree;
    # when both first names are spelled out they must be equal
    parts = norm.split()
    first, last = parts[0], parts[-1]
    for nc in sorted(cand_map):
        if last not in nc:
            continue
        cand_first = nc.split()[0]
        if len(cand_first) > 2 and len(first) > 2 and cand_first != first:
            continue
        if nc.startswith(first[0]):
            return cand_map[nc]
    return None


def find_best_match(name: str, candidates: Iterable[str], overrides: Optional[Dict[str, str]] = None, threshold: float = 0.9) -> Optional[str]:
    """Find best matching candidate for name.

    - First uses overrides (mapping normalized name -> candidate)
    - Then exact normalized match
    - Then last-name suffix match with a first-initial check
    - Then rapidfuzz token_set_ratio with cutoff=threshold
    Returns the matched candidate string or None.
    """
    if not name:
        return None
    norm = normalize_name(name)
    if not norm:
        return None
    if overrides and norm in overrides:
        return overrides[norm]

    cand_map = {normalize_name(c): c for c in candidates if c}
    cand_map.pop('', None)
    if norm in cand_map:
        return cand_map[norm]

    found = _suffix_match(norm, cand_map)
    if found is not None:
        return found

    best = None
    best_score = 0.0
    for nc in sorted(cand_map):
        score = fuzz.token_set_ratio(norm, nc) / 100.0
        if score > best_score:
            best_score = score
            best = cand_map[nc]
    if best_score >= threshold:
        return best
    return None


def match_entity(candidate_name: str, known_entities: Mapping[str, str], overrides: Optional[Dict[str, str]] = None, threshold: float = 0.9) -> Optional[str]:
    """Resolve a provider name to one of `known_entities` (entity id -> name).

    Kept separate from the extractor so an id-keyed join can replace it.
    Matching is containment based and can credit a shorter name found inside
    a longer one.
    """
    by_name: Dict[str, str] = {}
    for entity_id in sorted(known_entities):
        by_name.setdefault(known_entities[entity_id], entity_id)
    found = find_best_match(candidate_name, by_name.keys(), overrides=overrides, threshold=threshold)
    if found is None:
        return None
    return by_name.get(found)
