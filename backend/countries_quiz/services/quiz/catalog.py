import json
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple


class Continent(str, Enum):
    EUROPE = 'Europe'
    ASIA = 'Asia'
    AFRICA = 'Africa'
    NORTH_AMERICA = 'North America'
    SOUTH_AMERICA = 'South America'
    OCEANIA = 'Oceania'


# Display order used by the continent tables
CONTINENT_ORDER: Tuple[Continent, ...] = tuple(Continent)


@dataclass(frozen=True)
class CountryRecord:
    canonical_name: str
    iso_code: str
    continent: Continent
    aliases: Mapping[str, Tuple[str, ...]]

    def all_aliases(self) -> List[str]:
        """Every alias across languages, in file order (may repeat)."""
        out: List[str] = []
        for names in self.aliases.values():
            out.extend(names)
        return out

    def to_dict(self) -> dict:
        return {
            'name': self.canonical_name,
            'iso_code': self.iso_code,
            'continent': self.continent.value,
        }


class CountryCatalog:
    """Fixed, read-only set of country records keyed by canonical name."""

    def __init__(self, records):
        self._records: Tuple[CountryRecord, ...] = tuple(records)
        self._by_name: Dict[str, CountryRecord] = {}
        for rec in self._records:
            if rec.canonical_name in self._by_name:
                raise ValueError(f"Duplicate canonical name in catalog: {rec.canonical_name}")
            self._by_name[rec.canonical_name] = rec

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(self._records)

    def __contains__(self, name) -> bool:
        return name in self._by_name

    @property
    def records(self) -> Tuple[CountryRecord, ...]:
        return self._records

    def get(self, canonical_name: str):
        return self._by_name.get(canonical_name)

    def by_continent(self) -> Dict[Continent, List[CountryRecord]]:
        grouped: Dict[Continent, List[CountryRecord]] = {c: [] for c in CONTINENT_ORDER}
        for rec in self._records:
            grouped[rec.continent].append(rec)
        return grouped


def _record_from_dict(raw: dict) -> CountryRecord:
    aliases = {
        str(lang): tuple(str(a) for a in names)
        for lang, names in (raw.get('aliases') or {}).items()
    }
    return CountryRecord(
        canonical_name=raw['name'],
        iso_code=str(raw['iso']).upper(),
        continent=Continent(raw['continent']),
        aliases=MappingProxyType(aliases),
    )


def load_catalog(path: str) -> CountryCatalog:
    """Load a catalog from a JSON list of ``{name, iso, continent, aliases}`` objects."""
    with open(path, encoding='utf-8') as fh:
        raw = json.load(fh)
    return CountryCatalog(_record_from_dict(r) for r in raw)


@lru_cache(maxsize=None)
def get_catalog(path: str) -> CountryCatalog:
    """Process-wide catalog for ``path``; loaded once and shared read-only."""
    return load_catalog(path)
