from flask import Blueprint, jsonify, request
from countries_quiz.services.quiz import get_resolver
from countries_quiz.services.quiz.catalog import Continent

countries = Blueprint('countries', __name__)


@countries.route('', methods=['GET'])
@countries.route('/', methods=['GET'])
def list_countries():
    """
    Lists the catalog (canonical name, iso code, continent), optionally
    narrowed with ?continent=Europe.
    """
    catalog = get_resolver().catalog
    continent = (request.args.get('continent') or '').strip()
    records = list(catalog)
    if continent:
        try:
            wanted = Continent(continent)
        except ValueError:
            return jsonify({'error': f'Unknown continent: {continent}'}), 400
        records = [r for r in records if r.continent == wanted]
    return jsonify({'total': len(records), 'countries': [r.to_dict() for r in records]})


@countries.route('/continents', methods=['GET'])
def list_continents():
    catalog = get_resolver().catalog
    grouped = catalog.by_continent()
    return jsonify([
        {'continent': continent.value, 'total': len(records)}
        for continent, records in grouped.items()
    ])
