"""Database configuration and initialization."""
import logging
from contextlib import contextmanager

from sqlalchemy import BigInteger, Integer, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base

from shoppos.exceptions import PosError, StoreError

logger = logging.getLogger(__name__)

# Create SQLAlchemy base
Base = declarative_base()

# SQLite only autoincrements INTEGER PRIMARY KEY columns
BigIntegerPK = BigInteger().with_variant(Integer, 'sqlite')

# Global session and engine
engine = None
db_session = None


def init_db(app):
    """Initialize database connection."""
    global engine, db_session

    database_uri = app.config['SQLALCHEMY_DATABASE_URI']
    engine_kwargs = {
        'echo': app.config.get('SQLALCHEMY_ECHO', False),
        'pool_pre_ping': True,  # Enable connection health checks
    }
    if not database_uri.startswith('sqlite'):
        engine_kwargs['pool_size'] = app.config.get('SQLALCHEMY_POOL_SIZE', 10)
        engine_kwargs['max_overflow'] = app.config.get('SQLALCHEMY_MAX_OVERFLOW', 20)

    engine = create_engine(database_uri, **engine_kwargs)

    db_session = scoped_session(
        sessionmaker(autocommit=False, autoflush=False, bind=engine)
    )

    Base.query = db_session.query_property()

    # Register teardown
    @app.teardown_appcontext
    def shutdown_session(exception=None):
        """Close database session and rollback on error."""
        if exception:
            db_session.rollback()
        db_session.remove()


def init_schema():
    """Create all tables that do not exist yet."""
    import shoppos.models  # noqa: F401  (registers mappers on Base.metadata)
    Base.metadata.create_all(bind=engine)


def drop_schema():
    """Drop all tables. Used by the test suite."""
    import shoppos.models  # noqa: F401
    Base.metadata.drop_all(bind=engine)


def get_session():
    """Get database session."""
    return db_session


@contextmanager
def transaction(session):
    """
    Run a block as one unit of work.

    Commits when the block exits normally. Any exception rolls the whole
    unit back; application errors are re-raised untouched and database
    failures are logged and surfaced as an opaque StoreError.
    """
    try:
        yield session
        session.commit()
    except PosError:
        session.rollback()
        raise
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Transaction rolled back after store failure: {e}", exc_info=True)
        raise StoreError() from e
    except Exception:
        session.rollback()
        raise


def dialect_insert(session, model):
    """Return an INSERT construct supporting ON CONFLICT for the bound dialect."""
    dialect = session.get_bind().dialect.name
    if dialect == 'postgresql':
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == 'sqlite':
        from sqlalchemy.dialects.sqlite import insert
    else:
        raise RuntimeError(f'Upserts are not supported on the {dialect} dialect')
    return insert(model)
