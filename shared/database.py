import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from shared.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


class EventStore:
    """
    Owns the connection to the event database.

    The engine is built on first use and shared for the life of the process.
    ``dispose()`` releases the pool; the next use builds a fresh engine.
    """

    def __init__(self, url: str, **engine_options: Any):
        self.url = url
        self._engine_options: Dict[str, Any] = {"pool_pre_ping": True, **engine_options}
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None
        self._lock = threading.Lock()

    @property
    def engine(self) -> Engine:
        with self._lock:
            if self._engine is None:
                engine = create_engine(self.url, **self._engine_options)
                if engine.dialect.name == "postgresql":
                    event.listen(engine, "connect", _configure_postgres_session)
                self._session_factory = sessionmaker(bind=engine, autoflush=False)
                self._engine = engine
                logger.info(f"Event store engine created for {self.safe_url}")
            return self._engine

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    @property
    def safe_url(self) -> str:
        return make_url(self.url).render_as_string(hide_password=True)

    def session(self) -> Session:
        if self._session_factory is None:
            self.engine  # first use builds the engine and the session factory
        return self._session_factory()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        db = self.session()
        try:
            yield db
        finally:
            db.close()

    def create_schema(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        with self._lock:
            if self._engine is not None:
                self._engine.dispose()
                logger.info("Event store engine disposed")
            self._engine = None
            self._session_factory = None


def _configure_postgres_session(dbapi_connection, connection_record):
    # UTC for date/hour extraction; no single statement may outlive the summary deadline
    cursor = dbapi_connection.cursor()
    cursor.execute("SET TIME ZONE 'UTC'")
    cursor.execute(f"SET statement_timeout = {int(settings.SUMMARY_TIMEOUT_SECONDS * 1000)}")
    cursor.close()
    # a rolled-back SET is undone, and the pool rolls back on every checkin
    dbapi_connection.commit()


event_store = EventStore(settings.DATABASE_URL)


def get_event_store() -> EventStore:
    return event_store
