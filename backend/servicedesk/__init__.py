from flask import Flask
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, scoped_session
from dotenv import load_dotenv
from typing import Optional, Dict, Any
import os

load_dotenv()

db_engine = None
SessionLocal = None
jwt = JWTManager()


def config_flag(value: Any, default: bool) -> bool:
    """Boolean config value that may arrive as a string ('false', '0', ...)."""
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


def _env_flag(name: str, default: bool) -> bool:
    return config_flag(os.getenv(name), default)


def create_app(config: Optional[Dict[str, Any]] = None):
    global db_engine, SessionLocal
    app = Flask(__name__)

    app.config['JWT_SECRET_KEY'] = os.getenv('JWT_SECRET_KEY', 'dev-secret')
    app.config['DATABASE_URL'] = os.getenv('DATABASE_URL', 'sqlite:///dev.db')
    # Outbound mail (smtp | memory | null)
    app.config['MAIL_BACKEND'] = os.getenv('MAIL_BACKEND', 'null')
    app.config['MAIL_HOST'] = os.getenv('MAIL_HOST', 'localhost')
    app.config['MAIL_PORT'] = int(os.getenv('MAIL_PORT', '587'))
    app.config['MAIL_USE_TLS'] = _env_flag('MAIL_USE_TLS', True)
    app.config['MAIL_USERNAME'] = os.getenv('MAIL_USERNAME', '')
    app.config['MAIL_PASSWORD'] = os.getenv('MAIL_PASSWORD', '')
    app.config['MAIL_DEFAULT_SENDER'] = os.getenv('MAIL_DEFAULT_SENDER', '')
    app.config['NOTIFY_TIMEOUT_SECONDS'] = float(os.getenv('NOTIFY_TIMEOUT_SECONDS', '10'))
    app.config['PUBLIC_BASE_URL'] = os.getenv('PUBLIC_BASE_URL', '')
    # Lifecycle behaviour switches
    app.config['LIFECYCLE_ENFORCE_TRANSITIONS'] = _env_flag('LIFECYCLE_ENFORCE_TRANSITIONS', False)
    app.config['LIFECYCLE_SUPPRESS_NOOP_SIDE_EFFECTS'] = _env_flag('LIFECYCLE_SUPPRESS_NOOP_SIDE_EFFECTS', True)

    if config:
        # allow tests or callers to override default config values
        app.config.update(config)

    # Database
    db_url = app.config['DATABASE_URL']
    if db_url.endswith(':memory:'):
        # Ensure a single shared in-memory SQLite database across all sessions
        db_engine = create_engine(
            db_url,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        db_engine = create_engine(db_url, echo=False, future=True)
    SessionLocal = scoped_session(sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False))

    jwt.init_app(app)

    from .services.dispatch import build_dispatcher
    app.extensions['notification_dispatcher'] = build_dispatcher(app.config)

    from .routes.auth import auth_bp
    from .routes.customers import customers_bp
    from .routes.tickets import tickets_bp
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(customers_bp, url_prefix='/customers')
    app.register_blueprint(tickets_bp, url_prefix='/tickets')

    @app.route('/healthz')
    def health():
        return {'status': 'ok'}

    # Unified error handler producing standardized JSON shape
    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        if isinstance(e, HTTPException):
            payload = {
                'error': {
                    'status': e.code,
                    'title': e.name,
                    'detail': e.description,
                }
            }
            return payload, e.code
        # Unhandled exception
        app.logger.exception('Unhandled exception')
        return {
            'error': {
                'status': 500,
                'title': 'Internal Server Error',
                'detail': 'Unexpected error'
            }
        }, 500

    return app


def get_db():
    return SessionLocal()
