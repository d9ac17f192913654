import json

import pytest

from countries_quiz.services.quiz.catalog import Continent, CountryCatalog, CountryRecord, load_catalog
from countries_quiz.services.quiz.resolver import NameResolver, find_alias_collisions
from conftest import TestConfig


@pytest.fixture(scope='module')
def catalog():
    return load_catalog(TestConfig.CATALOG_PATH)


@pytest.fixture(scope='module')
def resolver(catalog):
    return NameResolver(catalog)


def test_catalog_size_and_continents(catalog):
    assert len(catalog) == 197
    counts = {c: len(records) for c, records in catalog.by_continent().items()}
    assert counts == {
        Continent.EUROPE: 46,
        Continent.ASIA: 48,
        Continent.AFRICA: 54,
        Continent.NORTH_AMERICA: 23,
        Continent.SOUTH_AMERICA: 12,
        Continent.OCEANIA: 14,
    }


def test_catalog_has_no_alias_collisions(catalog):
    assert find_alias_collisions(catalog) == {}


def test_every_canonical_name_resolves_to_itself(catalog, resolver):
    for record in catalog:
        assert resolver.resolve(record.canonical_name) == record.canonical_name


@pytest.mark.parametrize('raw, expected', [
    ('UK', 'United Kingdom'),
    ('Royaume-Uni', 'United Kingdom'),
    ('the usa', 'United States'),
    ('Deutschland', 'Germany'),
    ('España', 'Spain'),
    ("Côte d'Ivoire", 'Ivory Coast'),
    ('Congo-Kinshasa', 'DR Congo'),
    ('Congo', 'Republic of the Congo'),
    ('Korea', 'South Korea'),
    ('DPRK', 'North Korea'),
])
def test_aliases_in_bundled_catalog(resolver, raw, expected):
    assert resolver.resolve(raw) == expected


def test_niger_and_nigeria_typo_is_ambiguous(resolver):
    # One edit from both names
    assert resolver.resolve('Nigeri') is None
    assert resolver.resolve('Nigeria') == 'Nigeria'


def test_duplicate_canonical_name_rejected():
    record = CountryRecord('France', 'FR', Continent.EUROPE, {'en': ('France',)})
    with pytest.raises(ValueError):
        CountryCatalog([record, record])


def test_load_catalog_reads_json(tmp_path):
    path = tmp_path / 'tiny.json'
    path.write_text(json.dumps([
        {'name': 'Peru', 'iso': 'pe', 'continent': 'South America', 'aliases': {'es': ['Perú']}},
    ]), encoding='utf-8')
    catalog = load_catalog(str(path))
    peru = catalog.get('Peru')
    assert peru.iso_code == 'PE'
    assert peru.continent == Continent.SOUTH_AMERICA
    assert peru.all_aliases() == ['Perú']
    assert 'Peru' in catalog
    assert peru.to_dict() == {'name': 'Peru', 'iso_code': 'PE', 'continent': 'South America'}


def test_english_long_form_of_dr_congo_credits_republic_of_the_congo(resolver):
    # Filler stripping reduces both long forms to 'congo'; DR Congo is reached by its other names
    assert resolver.resolve('Democratic Republic of the Congo') == 'Republic of the Congo'
    assert resolver.resolve('Republic of the Congo') == 'Republic of the Congo'
    for raw in ('DR Congo', 'DRC', 'Zaire', 'République démocratique du Congo'):
        assert resolver.resolve(raw) == 'DR Congo', raw
