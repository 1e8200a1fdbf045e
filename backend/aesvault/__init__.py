# Creates the Flask app (App Factory)
from flask import Flask, jsonify
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_sqlalchemy import SQLAlchemy
from werkzeug.exceptions import HTTPException
import logging
from .config import Config
from .errors import AesVaultError, ConfigurationError
from .security import MessageCipher

# Initialize extensions
db = SQLAlchemy()
jwt = JWTManager()


def _register_error_handlers(app):
    @app.errorhandler(AesVaultError)
    def handle_app_error(e):
        return jsonify({'message': e.message}), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({'message': e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        db.session.rollback()
        app.logger.exception('Unhandled error while serving request')
        return jsonify({'message': 'Internal server error'}), 500


# Application Factory Function
def create_app(overrides=None):
    """Build the app. Raises ConfigurationError for a missing or malformed
    ENCRYPTION_KEY and lets database errors escape, so a misconfigured
    process never starts serving.
    """
    app = Flask(__name__, static_folder=None)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)

    # Logging configuration (DEBUG level by default)
    if not app.logger.handlers:
        logging.basicConfig(level=logging.DEBUG,
                            format='%(asctime)s %(levelname)s %(name)s - %(message)s')
    app.logger.setLevel(logging.DEBUG)

    # The key is validated once here and never per request
    app.extensions['message_cipher'] = MessageCipher(app.config['ENCRYPTION_KEY'])
    limit = app.config['HISTORY_LIMIT']
    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ConfigurationError(f'HISTORY_LIMIT must be a positive integer, got {limit!r}')

    # Extensions
    db.init_app(app)
    jwt.init_app(app)
    CORS(app, resources={r"/api/*": {"origins": app.config['CORS_ORIGINS']}},
         methods=['GET', 'POST'], allow_headers=['Content-Type', 'Authorization'],
         supports_credentials=True)

    from .store import SQLRecordStore
    app.extensions['record_store'] = SQLRecordStore(db)

    # Import and register the blueprint from routes.py
    from .routes import api as api_blueprint
    app.register_blueprint(api_blueprint, url_prefix='/api')
    _register_error_handlers(app)

    # Creating the tables doubles as the startup connectivity check
    with app.app_context():
        from . import models  # noqa: F401
        db.create_all()
    app.logger.info(f"Connected to database {app.config['SQLALCHEMY_DATABASE_URI'].split('@')[-1]}")

    app.logger.debug('Application created and configured')
    return app
