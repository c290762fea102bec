import secrets
from logging.config import dictConfig

from flask import Flask, jsonify
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from werkzeug.exceptions import HTTPException

from config import config
from dropzone.services import AccessGate, SizePolicy, StorageResolver, UploadManager, init_scheduler
from dropzone.utils.errors import StorageUnavailable

# Initialize extensions
jwt = JWTManager()

LOG_FORMAT = '[%(levelname)s] %(asctime)s - %(name)s - %(message)s'


def configure_logging():
    dictConfig({
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {'default': {'format': LOG_FORMAT}},
        'handlers': {'console': {'class': 'logging.StreamHandler', 'formatter': 'default'}},
        'root': {'level': 'INFO', 'handlers': ['console']},
    })


def create_app(config_name='default', overrides=None):
    """Application factory function"""
    configure_logging()
    app = Flask(__name__, static_folder='public', static_url_path='')

    # Load configuration
    app.config.from_object(config[config_name])
    if overrides:
        app.config.update(overrides)
    if not app.config.get('JWT_SECRET_KEY'):
        # Credentials do not survive a restart without a configured key
        app.config['JWT_SECRET_KEY'] = secrets.token_hex(32)

    # Initialize extensions
    jwt.init_app(app)
    CORS(app, supports_credentials=True)

    # Upload services
    resolver = StorageResolver(app.config['UPLOAD_DIR'])
    try:
        resolver.ensure_root()
    except StorageUnavailable as e:
        app.logger.critical(f"Directory error: {e.message}")
        app.logger.critical("Please check directory permissions and mounting")
        raise

    manager = UploadManager(resolver, SizePolicy.from_megabytes(app.config['MAX_FILE_SIZE']))
    gate = AccessGate.from_config(app.config)
    app.extensions['upload_manager'] = manager
    app.extensions['access_gate'] = gate

    if app.config.get('UPLOAD_SECRET') and not gate.challenge_required():
        app.logger.warning(
            f"UPLOAD_SECRET ignored: it must contain between {app.config['SECRET_MIN_LENGTH']} "
            f"and {app.config['SECRET_MAX_LENGTH']} digits"
        )
    app.logger.info(f"Access gate {'enabled' if gate.challenge_required() else 'disabled'}")
    app.logger.info(f"Upload directory: {resolver.root} (max file size {manager.size_policy.limit_in_mb} MB)")

    contents = resolver.list_contents()
    app.logger.info(f"Current directory contents ({len(contents)} files):")
    for name in contents:
        app.logger.info(f"- {name}")

    # Register blueprints
    from dropzone.routes import auth_bp, pages_bp, upload_bp
    app.register_blueprint(pages_bp)
    app.register_blueprint(upload_bp, url_prefix='/upload')
    app.register_blueprint(auth_bp, url_prefix='/api')

    register_error_handlers(app)

    app.extensions['upload_scheduler'] = init_scheduler(app, manager)
    return app


def register_error_handlers(app):
    @app.errorhandler(Exception)
    def handle_unexpected(e):
        if isinstance(e, HTTPException):
            return e
        app.logger.exception(f"Unhandled error: {e}")
        return jsonify({'message': 'Internal server error', 'error': str(e)}), 500
