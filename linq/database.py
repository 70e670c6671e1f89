"""Database configuration and initialization."""
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# Create SQLAlchemy base
Base = declarative_base()

# Global session and engine
engine = None
db_session = None


def init_db(app):
    """Initialize database connection."""
    global engine, db_session

    database_uri = app.config['SQLALCHEMY_DATABASE_URI']
    options = dict(app.config.get('SQLALCHEMY_ENGINE_OPTIONS') or {})

    if database_uri.startswith('sqlite'):
        # In-memory SQLite must share one connection across threads
        options = {
            'connect_args': {'check_same_thread': False},
            'poolclass': StaticPool,
        }

    engine = create_engine(
        database_uri,
        echo=app.config.get('SQLALCHEMY_ECHO', False),
        **options
    )

    db_session = scoped_session(
        sessionmaker(autocommit=False, autoflush=False, bind=engine)
    )

    if app.config.get('DB_CREATE_ALL'):
        # Import models so they register on Base.metadata
        from linq import models  # noqa: F401
        Base.metadata.create_all(bind=engine)
        logger.info("[DB] Tables created on %s", engine.url.render_as_string(hide_password=True))

    # Register teardown
    @app.teardown_appcontext
    def shutdown_session(exception=None):
        """Close database session and rollback on error."""
        if exception:
            db_session.rollback()
        db_session.remove()


def get_session():
    """Get database session."""
    return db_session
