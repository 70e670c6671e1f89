"""Flask application factory."""
from flask import Flask, request
from werkzeug.exceptions import HTTPException
from linq.database import init_db
import logging
import traceback


def create_app(config_object='config.Config'):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s'
    )
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Sentry error tracking, only when a DSN is configured
    if app.config.get('SENTRY_DSN') and not app.config.get('TESTING'):
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=app.config['SENTRY_DSN'],
            integrations=[FlaskIntegration()],
            traces_sample_rate=0.1,
            environment=app.config.get('ENV', 'production'),
        )

    # Initialize Redis cache (carts)
    from linq.services.cache_service import init_cache
    init_cache(app)

    # Prometheus request metrics
    from linq.blueprints.metrics import setup_metrics_instrumentation
    setup_metrics_instrumentation(app)

    # Production: trust the reverse proxy headers
    if app.config.get('ENV') == 'production':
        from werkzeug.middleware.proxy_fix import ProxyFix
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    # Initialize database
    init_db(app)

    # Error Handlers: everything leaves in the error envelope
    from linq.api.service import ApiService
    from linq.exceptions import LinqError

    @app.errorhandler(LinqError)
    def handle_linq_error(error):
        api = ApiService(request)
        api.handle_api_error(error, error.status_code)
        return api.response

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        api = ApiService(request)
        api.handle_api_error(Exception(error.description), error.code)
        return api.response

    @app.errorhandler(Exception)
    def internal_error(error):
        app.logger.error(f"Unhandled Exception: {error}")
        app.logger.error(f"Traceback: {traceback.format_exc()}")
        api = ApiService(request)
        api.handle_api_error(Exception('Internal Server Error'), 500)
        return api.response

    # Register blueprints
    from linq.blueprints.main import main_bp
    from linq.blueprints.sales import sales_bp
    from linq.blueprints.carts import carts_bp
    from linq.blueprints.metrics import metrics_bp

    app.register_blueprint(main_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(carts_bp)
    app.register_blueprint(metrics_bp)

    app.logger.info(f"API_VENDOR={app.config.get('API_VENDOR')}")

    return app
