import os
import sys
import pytest

# Ensure the backend root (containing the `countries_quiz` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from countries_quiz import create_app, db, socketio
from countries_quiz.services.quiz.catalog import Continent, CountryCatalog, CountryRecord
from countries_quiz.services.quiz.registry import sessions
from countries_quiz.services.quiz.resolver import NameResolver


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = ['http://localhost:5173']
    LOG_LEVEL = 'INFO'
    CATALOG_PATH = os.path.join(BACKEND_ROOT, 'data', 'countries.json')
    REVIEW_DURATION_SEC = 180
    CLOCK_INTERVAL_SEC = 0
    CLOCK_HEARTBEAT_SEC = 0
    LEADERBOARD_LIMIT = 100
    LEADERBOARD_MAX_LIMIT = 500
    SESSION_RETENTION_SEC = 3600


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import countries_quiz.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()
    sessions._sessions.clear()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')


def _record(name, iso, continent, *aliases):
    return CountryRecord(
        canonical_name=name,
        iso_code=iso,
        continent=continent,
        aliases={'en': (name, *aliases)},
    )


@pytest.fixture()
def small_catalog():
    """A handful of countries with the awkward names the resolver has to cope with."""
    return CountryCatalog([
        _record('France', 'FR', Continent.EUROPE),
        _record('United Kingdom', 'GB', Continent.EUROPE, 'UK', 'U.K.', 'Great Britain'),
        _record('Guinea-Bissau', 'GW', Continent.AFRICA),
        _record("Côte d'Ivoire", 'CI', Continent.AFRICA, 'Ivory Coast'),
        _record('Iran', 'IR', Continent.ASIA),
        _record('Iraq', 'IQ', Continent.ASIA),
        _record('United States', 'US', Continent.NORTH_AMERICA, 'USA', 'America'),
        _record('Peru', 'PE', Continent.SOUTH_AMERICA),
        _record('Fiji', 'FJ', Continent.OCEANIA),
    ])


@pytest.fixture()
def small_resolver(small_catalog):
    return NameResolver(small_catalog)
