"""QR Attendance - Application Factory."""
import logging
import os
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
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["200 per day", "50 per hour"]
)

def create_app(config_name: str = None, config_overrides: dict = None) -> Flask:
    """Application factory pattern."""
    app = Flask(__name__)

    # Load configuration
    from qr_attendance.config import get_config
    config_class = get_config(config_name)
    app.config.from_object(config_class)
    if config_overrides:
        app.config.update(config_overrides)

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
            'service': 'QR Attendance',
            'version': '1.0.0'
        })

    return app

def register_blueprints(app: Flask) -> None:
    """Register all application blueprints."""
    from qr_attendance.api.auth import auth_bp
    from qr_attendance.api.face_recognition import face_bp
    from qr_attendance.api.sessions import sessions_bp
    from qr_attendance.api.attendance import attendance_bp
    from qr_attendance.utils.swagger import get_swagger_blueprint, generate_swagger_spec, SWAGGER_URL

    # Accounts (external collaborator surface)
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(face_bp, url_prefix='/api/face-recognition')

    # Core Features
    app.register_blueprint(sessions_bp, url_prefix='/api/sessions')
    app.register_blueprint(attendance_bp, url_prefix='/api/attendance')

    # Swagger UI
    @app.route('/api/swagger.json')
    def swagger_spec():
        """Serve Swagger/OpenAPI specification."""
        return jsonify(generate_swagger_spec())

    app.register_blueprint(get_swagger_blueprint(), url_prefix=SWAGGER_URL)

def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from qr_attendance.utils.helpers import handle_error, error_response
    from qr_attendance.services.exceptions import AttendanceError, DuplicateAdmission
    from werkzeug.exceptions import HTTPException

    @app.errorhandler(AttendanceError)
    def attendance_error(error):
        if isinstance(error, DuplicateAdmission) and error.existing_record is not None:
            return error_response(
                error.message,
                error.status_code,
                data={'attendance': error.existing_record.to_dict()}
            )
        return error_response(error.message, error.status_code)

    @app.errorhandler(400)
    def bad_request(error):
        return handle_error(error, 400)

    @app.errorhandler(401)
    def unauthorized(error):
        return handle_error(error, 401)

    @app.errorhandler(403)
    def forbidden(error):
        return handle_error(error, 403)

    @app.errorhandler(404)
    def not_found(error):
        return handle_error(error, 404)

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        app.logger.error('Unhandled error: %s', error)
        return error_response('Internal server error', 500)

    @app.errorhandler(HTTPException)
    def handle_exception(e):
        return handle_error(e, e.code)

    # JWT error handlers
    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({
            'error': True,
            'message': 'Token has expired',
            'status_code': 401
        }), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return jsonify({
            'error': True,
            'message': 'Invalid token',
            'status_code': 401
        }), 401

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return jsonify({
            'error': True,
            'message': 'Authorization token required',
            'status_code': 401
        }), 401

def setup_logging(app: Flask) -> None:
    """Setup application logging."""
    level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO'), logging.INFO)
    logging.getLogger('qr_attendance').setLevel(level)

    if not app.debug and not app.testing:
        log_file = app.config.get('LOG_FILE', 'logs/app.log')
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(level)
        app.logger.addHandler(file_handler)
        logging.getLogger('qr_attendance').addHandler(file_handler)

        app.logger.setLevel(level)
        app.logger.info('QR Attendance startup')

def setup_database(app: Flask) -> None:
    """Setup database connections."""
    with app.app_context():
        # Import all models
        from qr_attendance.models import (
            User, UserRole,
            SessionTicket,
            AttendanceRecord, AttendanceStatus, AttendanceMethod
        )

        if db.engine.dialect.name == 'sqlite':
            serialize_sqlite_writes(db.engine)

def serialize_sqlite_writes(engine) -> None:
    """Start every SQLite transaction with BEGIN IMMEDIATE.

    Concurrent deferred transactions can fail with "database is locked"
    instead of waiting; taking the write lock up front makes competing
    admissions queue on the busy timeout.
    """
    from sqlalchemy import event

    @event.listens_for(engine, "connect")
    def disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

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
        """Create admin user."""
        email = click.prompt('Admin email')
        name = click.prompt('Admin name')
        password = click.prompt('Password', hide_input=True)

        from qr_attendance.models.user import User, UserRole

        admin = User(
            email=email.lower().strip(),
            name=name,
            role=UserRole.ADMIN
        )
        admin.set_password(password)

        try:
            db.session.add(admin)
            db.session.commit()
            click.echo(f'Admin user created: {email}')
        except Exception as e:
            db.session.rollback()
            click.echo(f'Error creating admin: {str(e)}')

    @app.cli.command('deactivate-expired-tickets')
    def deactivate_expired_tickets():
        """Mark tickets past their expiry as inactive."""
        from qr_attendance.services.policy import AttendancePolicy
        from qr_attendance.services.ticket_service import TicketService

        service = TicketService(AttendancePolicy.from_config(app.config))
        count = service.deactivate_expired()
        click.echo(f'Deactivated {count} expired tickets.')
