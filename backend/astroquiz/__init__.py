from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()


def _allowed_origins(value):
    if not value or value.strip() == '*':
        return '*'
    return [origin.strip() for origin in value.split(',') if origin.strip()]


def create_app(config_class=Config, store=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(
        flask_app,
        origins=_allowed_origins(flask_app.config.get('ALLOWED_ORIGINS')),
        methods=['GET', 'POST', 'OPTIONS'],
        allow_headers=['Content-Type'],
    )

    # Models must be registered on the metadata before create_all / migrations
    from astroquiz import models  # noqa: F401
    from astroquiz.services.store import build_store
    from astroquiz.services.quiz import SheetQuizRepository

    if store is None:
        store = build_store(flask_app.config)
    flask_app.extensions['quiz_store'] = store
    flask_app.extensions['quiz_repository'] = SheetQuizRepository.from_config(store, flask_app.config)
    flask_app.logger.info(
        f"[startup] store={type(store).__name__} backend={flask_app.config.get('STORE_BACKEND')}"
    )

    from astroquiz.main import main
    flask_app.register_blueprint(main)

    from astroquiz.api.quiz import quiz_api
    # Mounted under /api to match the frontend API client
    flask_app.register_blueprint(quiz_api, url_prefix='/api')

    @flask_app.errorhandler(404)
    def not_found(exc):
        return jsonify({'success': False, 'error': 'not_found', 'message': 'Resource not found'}), 404

    @flask_app.errorhandler(405)
    def method_not_allowed(exc):
        return jsonify({'success': False, 'error': 'method_not_allowed', 'message': 'Method not allowed'}), 405

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the quiz tables."""
        from astroquiz.services.quiz import seed_workbook, sheet_names
        if (flask_app.config.get('STORE_BACKEND') or 'sql').lower() != 'sql':
            raise click.ClickException('db-reset only applies to the sql store backend')
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            seed_workbook(flask_app.extensions['quiz_store'], sheet_names(flask_app.config))
            click.echo('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
