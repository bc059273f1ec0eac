from contextlib import contextmanager

from sqlalchemy import create_engine, event, select, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, scoped_session

from grocery_inventory.config import config
from grocery_inventory.exceptions import DatabaseError
from grocery_inventory.models import Base, SchemaVersion


def _create_baseline(connection):
    Base.metadata.create_all(connection)


# Linear, forward-only list of (version, description, upgrade callable).
# Append new entries; never edit or remove applied ones.
MIGRATIONS = [
    (1, 'baseline schema', _create_baseline),
]


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Database connection manager for the Grocery Inventory system."""

    _instance = None

    def __new__(cls):
        """Singleton pattern implementation."""
        if cls._instance is None:
            cls._instance = super(Database, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize the database connection if not already initialized."""
        if self._initialized:
            return

        self._engine = None
        self._session_factory = None
        self._session = None
        self._initialized = True

    def initialize(self, connection_string=None):
        """Initialize database connection.

        Args:
            connection_string: Optional database connection string.
                              If not provided, will use configuration.
        """
        if connection_string is None:
            connection_string = config.get_db_url()

        echo = config.get_boolean('DATABASE', 'echo', False)

        self._engine = create_engine(connection_string, echo=echo)

        if self._engine.dialect.name == 'sqlite':
            event.listen(self._engine, 'connect', _enable_sqlite_foreign_keys)

        self._session_factory = sessionmaker(bind=self._engine)
        self._session = scoped_session(self._session_factory)

    def migrate(self):
        """Apply pending schema migrations in order.

        Returns:
            List of versions applied by this call
        """
        applied = []
        try:
            with self.engine.begin() as connection:
                SchemaVersion.__table__.create(connection, checkfirst=True)
                current = connection.execute(
                    select(func.max(SchemaVersion.version))
                ).scalar() or 0

                for version, description, upgrade in MIGRATIONS:
                    if version <= current:
                        continue
                    upgrade(connection)
                    connection.execute(
                        SchemaVersion.__table__.insert().values(
                            version=version, description=description
                        )
                    )
                    applied.append(version)
        except SQLAlchemyError as e:
            raise DatabaseError(f"Schema migration failed: {str(e)}")

        return applied

    def drop_all_tables(self):
        """Drop all tables from the database."""
        Base.metadata.drop_all(self.engine)

    def dispose(self):
        """Release the engine and all sessions."""
        if self._session is not None:
            self._session.remove()
        if self._engine is not None:
            self._engine.dispose()
        self._engine = None
        self._session_factory = None
        self._session = None

    @property
    def session(self):
        """Get the current database session."""
        if self._session is None:
            self.initialize()
        return self._session

    @property
    def engine(self):
        """Get the database engine."""
        if self._engine is None:
            self.initialize()
        return self._engine

    @contextmanager
    def session_scope(self):
        """Provide a transactional scope around a series of operations."""
        session = self.session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

# Global database instance
db = Database()

@contextmanager
def session_scope():
    """Session scope context manager."""
    with db.session_scope() as session:
        yield session
