# --- storefront/__init__.py ---
from flask import Flask, jsonify

from .config import Config
from .extensions import db, jwt, cors, migrate
from .logging_config import setup_logging, init_request_logging

SERVICE_NAME = "storefront"


def create_app(config_object=None):
    config_object = config_object or Config
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)
    config_object.init_app(app)

    setup_logging(
        SERVICE_NAME,
        level=app.config.get("LOG_LEVEL", "INFO"),
        json_output=app.config.get("LOG_JSON", True),
    )

    # Init extensions
    db.init_app(app)
    jwt.init_app(app)
    cors.init_app(app, resources={r"/*": {"origins": "*"}}, expose_headers=["X-Cart-Id", "X-Order-Id", "X-Request-ID"])
    migrate.init_app(app, db)

    # Register blueprints
    from .cart import bp as cart_bp; app.register_blueprint(cart_bp)
    from .checkout import bp as checkout_bp; app.register_blueprint(checkout_bp)
    from .order import bp as order_bp; app.register_blueprint(order_bp)

    from .errors import register_error_handlers
    register_error_handlers(app)
    init_request_logging(app, SERVICE_NAME)

    from .cli import register_cli
    register_cli(app)

    @app.get("/")
    def health():
        return jsonify(ok=True, msg="API running")

    with app.app_context():
        db.create_all()

    return app
