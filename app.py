from flask import Flask
from flask_login import LoginManager
from models import db, User
from dotenv import load_dotenv
from generators.pdf_document import DocumentAssembler
from generators.rasterizer import GotenbergRasterizer
from generators.templates import DEFAULT_TEMPLATE, build_default_registry
from generators.templates.base import LogoFetcher
import os

load_dotenv()


def _load_config(app, test_config=None):
    app.config['SECRET_KEY'] = os.getenv('SECRET_KEY', 'dev-secret-key-change-in-production')
    app.config['SQLALCHEMY_DATABASE_URI'] = os.getenv('DATABASE_URL', 'sqlite:///invoices.db')
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['RASTERIZER_URL'] = os.getenv('RASTERIZER_URL', 'http://localhost:3000')
    app.config['RASTERIZER_TIMEOUT'] = float(os.getenv('RASTERIZER_TIMEOUT', '30'))
    app.config['RASTER_SCALE'] = float(os.getenv('RASTER_SCALE', '2'))
    app.config['LOGO_FETCH_TIMEOUT'] = float(os.getenv('LOGO_FETCH_TIMEOUT', '10'))
    app.config['DEFAULT_INVOICE_TEMPLATE'] = os.getenv('DEFAULT_INVOICE_TEMPLATE', DEFAULT_TEMPLATE)
    app.config['ADMIN_USERNAME'] = os.getenv('ADMIN_USERNAME', 'admin')
    app.config['ADMIN_PASSWORD'] = os.getenv('ADMIN_PASSWORD', 'password123')
    # Any Rasterizer instance; None builds the Gotenberg one from RASTERIZER_URL
    app.config['RASTERIZER'] = None
    if test_config:
        app.config.update(test_config)


def _build_documents(app):
    """The invoice PDF pipeline shared by all requests"""
    registry = build_default_registry(
        LogoFetcher(timeout=app.config['LOGO_FETCH_TIMEOUT']),
        default_id=app.config['DEFAULT_INVOICE_TEMPLATE'],
    )
    rasterizer = app.config['RASTERIZER'] or GotenbergRasterizer(
        app.config['RASTERIZER_URL'], timeout=app.config['RASTERIZER_TIMEOUT'],
    )
    return DocumentAssembler(registry, rasterizer, scale=app.config['RASTER_SCALE'])


def create_app(test_config=None):
    app = Flask(__name__, static_folder=None)
    _load_config(app, test_config)

    db.init_app(app)

    # Flask-Login setup; unauthenticated API calls get a plain 401
    login_manager = LoginManager()
    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    app.extensions['invoice_documents'] = _build_documents(app)

    # Register blueprints
    from blueprints.auth import auth_bp
    from blueprints.invoices import invoices_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(invoices_bp)

    # Initialize database and create default admin
    with app.app_context():
        db.create_all()

        if User.query.count() == 0:
            admin_username = app.config['ADMIN_USERNAME']
            admin = User(username=admin_username, display_name='Administrator')
            admin.set_password(app.config['ADMIN_PASSWORD'])
            db.session.add(admin)
            db.session.commit()
            print(f"Created default admin user: {admin_username}")

    return app


if __name__ == '__main__':
    create_app().run(port=5000, debug=False)
