from flask import Flask
from flask_cors import CORS
from flask_migrate import Migrate

from listing_service import metrics
from listing_service.cache import ProductCache
from listing_service.config import Config
from listing_service.errors import register_error_handlers
from listing_service.logger import configure_logging, logger
from listing_service.model import db, init_db
from listing_service.routes import api

migrate = Migrate()


def create_app(config=Config):
    app = Flask(__name__)
    app.config.from_object(config)

    configure_logging(app.config['LOG_LEVEL'])

    db.init_app(app)
    migrate.init_app(app, db)
    CORS(app)

    app.extensions['product_cache'] = ProductCache.from_url(
        app.config.get('REDIS_URL'), ttl=app.config['PRODUCT_CACHE_TTL']
    )

    metrics.init_app(app)
    register_error_handlers(app)
    app.register_blueprint(api)

    # health check
    @app.route("/health")
    def health():
        return "OK", 200

    logger.info("Listing service configured", extra={'endpoint': 'startup'})
    return app


def main():
    app = create_app()
    init_db(app)
    port = app.config['PORT']
    logger.info("Starting listing service", extra={'port': port})
    app.run(host=app.config['HOST'], port=port)


if __name__ == "__main__":
    main()
