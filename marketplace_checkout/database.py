"""Database handle and unit-of-work helpers."""
from contextlib import contextmanager

from flask import current_app
from sqlalchemy import BigInteger, Integer, create_engine, event, text
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base

# Create SQLAlchemy base
Base = declarative_base()

# BIGINT ids; SQLite only auto-increments an INTEGER primary key
BigIntPK = BigInteger().with_variant(Integer, 'sqlite')


class Database:
    """Engine plus session factory, owned by one application instance."""

    def __init__(self, uri, echo=False, pool_size=10, max_overflow=20):
        engine_kwargs = {'echo': echo, 'pool_pre_ping': True}
        if not uri.startswith('sqlite'):
            engine_kwargs.update(pool_size=pool_size, max_overflow=max_overflow)

        self.engine = create_engine(uri, **engine_kwargs)

        if self.engine.dialect.name == 'sqlite':
            @event.listens_for(self.engine, 'connect')
            def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute('PRAGMA foreign_keys=ON')
                cursor.close()

        self.session_factory = sessionmaker(autoflush=False, bind=self.engine)
        self.session = scoped_session(self.session_factory)

    def create_all(self):
        """Create every table registered on Base.metadata."""
        # Import models so they are registered before create_all
        from marketplace_checkout import models  # noqa: F401
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self):
        Base.metadata.drop_all(bind=self.engine)

    def new_session(self):
        """Return a standalone session, not bound to the request scope."""
        return self.session_factory()

    def dispose(self):
        self.session.remove()
        self.engine.dispose()


def init_db(app):
    """Initialize database connection for the app."""
    database = Database(
        app.config['SQLALCHEMY_DATABASE_URI'],
        echo=app.config.get('SQLALCHEMY_ECHO', False),
        pool_size=app.config.get('DB_POOL_SIZE', 10),
        max_overflow=app.config.get('DB_MAX_OVERFLOW', 20),
    )
    app.extensions['database'] = database

    @app.teardown_appcontext
    def shutdown_session(exception=None):
        """Close database session and rollback on error."""
        if exception:
            database.session.rollback()
        database.session.remove()

    return database


def get_database():
    """Get the Database bound to the current app."""
    return current_app.extensions['database']


def get_session():
    """Get the request-scoped database session."""
    return get_database().session


@contextmanager
def unit_of_work(session, timeout_ms=None):
    """
    Scope a transaction around a block of writes.

    Commits when the block exits normally; rolls back and re-raises on any
    exception, so callers never observe half-applied work. On PostgreSQL the
    optional timeout is applied with SET LOCAL and expires with the
    transaction.
    """
    try:
        if timeout_ms and session.get_bind().dialect.name == 'postgresql':
            session.execute(text(f'SET LOCAL statement_timeout = {int(timeout_ms)}'))
        yield session
        session.commit()
    except BaseException:
        session.rollback()
        raise
