"""Free-text country name resolution.

Raw keystroke text is normalized and matched against a flat index of
normalized aliases built once from the catalog. A match is either an
exact alias hit or, for longer inputs, the single closest alias within a
small edit distance. ``None`` means no match; resolution never raises.
"""

import re
import unicodedata
from collections import defaultdict
from typing import AbstractSet, Dict, List, Optional, Tuple

from .catalog import CountryCatalog

MIN_FUZZY_LENGTH = 3
MAX_LENGTH_DELTA = 2

# Letters NFKD does not decompose to a base Latin letter
_LETTER_MAP = str.maketrans({
    'æ': 'ae',
    'œ': 'oe',
    'ø': 'o',
    'ł': 'l',
    'đ': 'd',
    'ð': 'd',
    'þ': 'th',
    'ı': 'i',
})
_DELETED = re.compile(r"[.'`‘’ʼ]")
_SEPARATORS = re.compile(r'[\W_]+')
FILLER_PREFIXES = (
    'the',
    'democratic republic of',
    'republic of',
    'united states of',
    'kingdom of',
    'state of',
)
_FILLER = re.compile(r'^(?:%s) (?=\S)' % '|'.join(re.escape(p) for p in FILLER_PREFIXES))


def normalize(text: str) -> str:
    """Canonical comparison form of ``text``.

    Lowercases, strips diacritics, drops periods and apostrophes, turns
    hyphens and other punctuation into spaces, collapses whitespace and
    removes leading filler words ("the", "republic of", ...) until none
    is left. Idempotent.
    """
    if not text:
        return ''
    folded = unicodedata.normalize('NFKD', text.casefold())
    folded = ''.join(ch for ch in folded if not unicodedata.combining(ch)).casefold()
    folded = folded.translate(_LETTER_MAP).replace('&', ' and ')
    folded = _DELETED.sub('', folded)
    folded = ' '.join(_SEPARATORS.sub(' ', folded).split())
    while True:
        stripped = _FILLER.sub('', folded, count=1)
        if stripped == folded:
            return folded
        folded = stripped


def edit_distance(a: str, b: str, limit: Optional[int] = None) -> int:
    """Levenshtein distance (unit cost insert/delete/substitute).

    With ``limit`` set, returns ``limit + 1`` as soon as the distance is
    known to exceed it.
    """
    if a == b:
        return 0
    if len(a) < len(b):
        a, b = b, a
    if not b:
        return len(a)
    if limit is not None and len(a) - len(b) > limit:
        return limit + 1
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, start=1):
        current = [i]
        for j, cb in enumerate(b, start=1):
            current.append(min(
                previous[j] + 1,
                current[j - 1] + 1,
                previous[j - 1] + (ca != cb),
            ))
        if limit is not None and min(current) > limit:
            return limit + 1
        previous = current
    if limit is not None and previous[-1] > limit:
        return limit + 1
    return previous[-1]


def fuzzy_tolerance(length: int) -> int:
    return max(1, length // 4)


def build_alias_index(catalog: CountryCatalog) -> Dict[str, str]:
    """Map every normalized alias to its canonical name.

    The first record wins on a collision; collisions are data errors
    reported by :func:`find_alias_collisions`.
    """
    index: Dict[str, str] = {}
    for record in catalog:
        for alias in [record.canonical_name, *record.all_aliases()]:
            key = normalize(alias)
            if key and key not in index:
                index[key] = record.canonical_name
    return index


def find_alias_collisions(catalog: CountryCatalog) -> Dict[str, List[str]]:
    """Normalized aliases claimed by more than one country."""
    owners: Dict[str, set] = defaultdict(set)
    for record in catalog:
        for alias in [record.canonical_name, *record.all_aliases()]:
            key = normalize(alias)
            if key:
                owners[key].add(record.canonical_name)
    return {key: sorted(names) for key, names in owners.items() if len(names) > 1}


class NameResolver:
    def __init__(self, catalog: CountryCatalog):
        self.catalog = catalog
        self._index = build_alias_index(catalog)
        by_length: Dict[int, List[Tuple[str, str]]] = defaultdict(list)
        for alias in sorted(self._index):
            by_length[len(alias)].append((alias, self._index[alias]))
        self._by_length = dict(by_length)

    def __len__(self) -> int:
        return len(self._index)

    def lookup(self, normalized: str) -> Optional[str]:
        return self._index.get(normalized)

    def resolve(self, raw_input: str, already_guessed: AbstractSet[str] = frozenset()) -> Optional[str]:
        """Canonical name for ``raw_input``, or None.

        Already guessed countries never match again, whether reached
        exactly or by the fuzzy fallback.
        """
        if not raw_input or raw_input.isspace():
            return None
        key = normalize(raw_input)
        if not key:
            return None

        exact = self._index.get(key)
        if exact is not None:
            return None if exact in already_guessed else exact

        if len(key) < MIN_FUZZY_LENGTH:
            return None
        winner = self._closest(key)
        if winner is None or winner in already_guessed:
            return None
        return winner

    def _closest(self, key: str) -> Optional[str]:
        tolerance = fuzzy_tolerance(len(key))
        best = tolerance + 1
        owners: set = set()
        for length in range(len(key) - MAX_LENGTH_DELTA, len(key) + MAX_LENGTH_DELTA + 1):
            for alias, name in self._by_length.get(length, ()):
                distance = edit_distance(key, alias, limit=best)
                if distance < best:
                    best = distance
                    owners = {name}
                elif distance == best and distance <= tolerance:
                    owners.add(name)
        if best > tolerance or len(owners) != 1:
            return None
        return next(iter(owners))
