"""University Attendance Tracker - Application Factory."""
import logging
import os
from logging.handlers import RotatingFileHandler

from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)

def create_app(config_name: str = None) -> Flask:
    """Application factory pattern."""
    app = Flask(__name__)

    # Load configuration
    from config import get_config
    config_class = get_config(config_name)
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    limiter.init_app(app)

    # Configure CORS
    CORS(app, origins=app.config.get('CORS_ORIGINS', ["*"]))

    # Setup logging
    setup_logging(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Setup database
    setup_database(app)

    # Add CLI commands
    register_commands(app)

    # Add health check
    @app.route('/health')
    def health_check():
        return jsonify({
            'status': 'healthy',
            'service': 'Attendance Tracker',
            'version': '1.0.0'
        })

    return app

def register_blueprints(app: Flask) -> None:
    """Register all application blueprints."""
    from flask_swagger_ui import get_swaggerui_blueprint
    from attendance_tracker.api.auth import auth_bp
    from attendance_tracker.api.sessions import sessions_bp
    from attendance_tracker.api.attendance import attendance_bp
    from attendance_tracker.utils.swagger import SWAGGER_URL, API_URL, generate_swagger_spec

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(sessions_bp, url_prefix='/api/sessions')
    app.register_blueprint(attendance_bp, url_prefix='/api/attendance')

    @app.route(API_URL)
    def swagger_spec():
        """Serve Swagger/OpenAPI specification."""
        return jsonify(generate_swagger_spec())

    swaggerui_bp = get_swaggerui_blueprint(
        SWAGGER_URL,
        API_URL,
        config={'app_name': "Attendance Tracker API"}
    )
    app.register_blueprint(swaggerui_bp, url_prefix=SWAGGER_URL)

def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from attendance_tracker.utils.helpers import handle_error
    from werkzeug.exceptions import HTTPException

    @app.errorhandler(HTTPException)
    def handle_http_exception(e):
        return handle_error(e.description, e.code)

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        app.logger.exception('Unhandled error: %s', error)
        return handle_error('Internal server error', 500)

    # JWT error handlers
    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return handle_error('Token has expired', 401)

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return handle_error('Invalid token', 401)

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return handle_error('Authorization token required', 401)

def setup_logging(app: Flask) -> None:
    """Setup application logging."""
    level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO'), logging.INFO)
    app.logger.setLevel(level)
    logging.getLogger('attendance_tracker').setLevel(level)

    if not app.debug and not app.testing:
        log_file = app.config.get('LOG_FILE', 'logs/app.log')
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=5)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(level)
        app.logger.addHandler(file_handler)
        logging.getLogger('attendance_tracker').addHandler(file_handler)

        app.logger.info('Attendance Tracker startup')

def setup_database(app: Flask) -> None:
    """Import models so their tables are registered on the metadata."""
    with app.app_context():
        from attendance_tracker.models import (  # noqa: F401
            User, UserRole,
            Department, Course, Unit, Enrollment,
            LectureSession, SessionDevice,
            AttendanceRecord, AttendanceStatus
        )

def register_commands(app: Flask) -> None:
    """Register CLI commands."""
    import click

    @app.cli.command('init-db')
    @click.option('--drop', is_flag=True, help='Drop existing tables')
    def init_db(drop):
        """Initialize the database."""
        if drop:
            db.drop_all()
            click.echo('Dropped all tables.')

        db.create_all()
        click.echo('Created all tables.')

    @app.cli.command('create-admin')
    def create_admin():
        """Create super admin user."""
        email = click.prompt('Admin email')
        first_name = click.prompt('First name')
        last_name = click.prompt('Last name')
        password = click.prompt('Password', hide_input=True, confirmation_prompt=True)

        from attendance_tracker.models.user import User, UserRole

        admin = User(
            email=email.lower().strip(),
            first_name=first_name,
            last_name=last_name,
            role=UserRole.SUPER_ADMIN
        )
        admin.set_password(password)

        try:
            db.session.add(admin)
            db.session.commit()
            click.echo(f'Admin user created: {admin.email}')
        except Exception as e:
            db.session.rollback()
            raise click.ClickException(f'Error creating admin: {e}')

    @app.cli.command('seed-demo')
    def seed_demo():
        """Seed database with a small demo faculty."""
        from attendance_tracker.services.seed_service import SeedService

        credentials = SeedService.seed_demo()
        click.echo('Demo data created:')
        for role, email, password in credentials:
            click.echo(f'  {role}: {email} / {password}')
