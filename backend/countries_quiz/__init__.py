from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(str(flask_app.config.get('LOG_LEVEL', 'INFO')).upper())

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Import and register blueprints here
    from countries_quiz.main import main
    flask_app.register_blueprint(main)

    from countries_quiz.api.countries import countries
    flask_app.register_blueprint(countries, url_prefix='/api/countries')

    from countries_quiz.api.scores import scores
    flask_app.register_blueprint(scores, url_prefix='/api/scores')

    from countries_quiz.api.quiz import quiz
    flask_app.register_blueprint(quiz, url_prefix='/api/quiz')

    # Register Socket.IO event handlers on the initialized socketio instance
    from countries_quiz.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    # Load the catalog once at startup so a broken data file fails fast
    from countries_quiz.services.quiz import get_resolver
    resolver = get_resolver(flask_app)
    flask_app.logger.info(f"[catalog] {len(resolver.catalog)} countries, {len(resolver)} aliases")

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the database tables."""
        import countries_quiz.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    @click.command('catalog-check')
    def catalog_check_command():
        """Reports aliases that normalize to the same text for different countries."""
        from countries_quiz.services.quiz.resolver import find_alias_collisions
        collisions = find_alias_collisions(resolver.catalog)
        for alias, names in sorted(collisions.items()):
            print(f"{alias!r}: {', '.join(names)}")
        if collisions:
            raise click.ClickException(f"{len(collisions)} alias collision(s) found")
        print(f"Catalog OK: {len(resolver.catalog)} countries, {len(resolver)} aliases")

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(catalog_check_command)

    return flask_app
