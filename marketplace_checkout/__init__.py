"""Flask application factory."""
import os

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from marketplace_checkout.database import init_db


def create_app(config_object='config.Config', overrides=None):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)
    if overrides:
        app.config.update(overrides)

    # Initialize Sentry for error tracking in production
    if app.config.get('SENTRY_DSN') and app.config.get('ENV') == 'production':
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=app.config['SENTRY_DSN'],
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=app.config.get('ENV'),
            release=os.getenv('GIT_COMMIT', 'unknown')
        )

    # Initialize database
    init_db(app)

    # Checkout notifications (Redis pub/sub)
    from marketplace_checkout.services.notification_service import init_notifier
    init_notifier(app)

    # Prometheus metrics instrumentation
    from marketplace_checkout.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # Production: Enable ProxyFix behind a reverse proxy
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=0)

    # Error Handlers
    from marketplace_checkout.exceptions import CheckoutError

    @app.errorhandler(CheckoutError)
    def handle_checkout_error(error):
        """Handle custom application exceptions."""
        if error.status_code >= 500:
            app.logger.error(f"CheckoutError [{error.status_code}] {error.kind}: {error.message}")
        else:
            app.logger.info(f"CheckoutError [{error.status_code}] {error.kind}: {error.message}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        kind = 'NOT_FOUND' if error.code == 404 else 'HTTP_ERROR'
        return jsonify({'status': 'error', 'kind': kind, 'error': error.description}), error.code

    @app.errorhandler(Exception)
    def internal_error(error):
        app.logger.exception(f"Unhandled Exception: {error}")
        return jsonify({'status': 'error', 'kind': 'INTERNAL_ERROR', 'error': 'Internal server error.'}), 500

    # Register blueprints
    from marketplace_checkout.blueprints.main import main_bp
    from marketplace_checkout.blueprints.cart import cart_bp
    from marketplace_checkout.blueprints.orders import orders_bp
    from marketplace_checkout.blueprints.metrics import metrics_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(cart_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(metrics_bp)

    # Register CLI commands
    from marketplace_checkout.cli_commands import init_cli_commands
    init_cli_commands(app)

    return app
