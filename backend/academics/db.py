from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from academics.core import config
from academics.core.context import RequestContext
from academics.logger import get_logger
from academics.models import Base

logger = get_logger(__name__)


def normalize_database_url(url: str) -> str:
    # hosted Postgres still hands out 'postgres://'; SQLAlchemy 1.4+ wants 'postgresql://'
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Store:
    """
    Handle on the relational store: one engine plus its session factory.

    The process entry point builds exactly one of these and passes it to the
    engine components; nothing in the package creates a store on its own.
    """

    def __init__(self, url: str | None = None, echo: bool | None = None):
        self.url = normalize_database_url(url or config.DATABASE_URL)
        engine_kwargs = {"echo": config.SQL_ECHO if echo is None else echo}

        if self.url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if self.url in ("sqlite://", "sqlite:///:memory:"):
                # every session must see the same in-memory database
                engine_kwargs["poolclass"] = StaticPool

        self.engine = create_engine(self.url, **engine_kwargs)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        # results outlive their session, so committed state must stay loaded
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine
        )
        logger.debug("Store created for dialect %s", self.engine.dialect.name)

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    def create_all(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    @contextmanager
    def session_scope(self, ctx: RequestContext) -> Iterator[Session]:
        """Yields a session whose statements are counted into `ctx`."""
        db_session = self.SessionLocal()

        def _count(orm_execute_state):
            ctx.record_query()

        event.listen(db_session, "do_orm_execute", _count)
        try:
            yield db_session
        except Exception:
            db_session.rollback()
            raise
        finally:
            db_session.close()

    def dispose(self) -> None:
        self.engine.dispose()
        logger.debug("Store disposed")
