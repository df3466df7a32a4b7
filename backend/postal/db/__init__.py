import importlib
import logging
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from postal.errors import StoreUnavailable

Base = declarative_base()

log = logging.getLogger("postal.db")

# every module that declares tables on Base; imported before create_all
MODEL_MODULES = [
    "postal.models.post_office",
    "postal.models.shipment",
    "postal.models.zip_code_release",
]


def _enable_sqlite_savepoints(engine) -> None:
    # pysqlite defers BEGIN on its own, which breaks SAVEPOINT; emit it ourselves
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


class Database:
    """
    Explicit store handle: one engine plus its session factory.

    Lifecycle:
      - connect()        verify the store answers; raises StoreUnavailable
      - create_schema()  create tables (optionally dropping them first)
      - session()        new Session bound to the engine
      - dispose()        release pooled connections at shutdown
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        connect_args = {}
        if url.startswith("sqlite"):
            # sessions are handed across the threadpool used by sync routes
            connect_args["check_same_thread"] = False
        self.engine = create_engine(url, future=True, echo=echo, connect_args=connect_args)
        if url.startswith("sqlite"):
            _enable_sqlite_savepoints(self.engine)
        self.SessionLocal = sessionmaker(
            autocommit=False, autoflush=False, expire_on_commit=False, bind=self.engine
        )

    def connect(self) -> None:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            log.error("store unreachable at %s: %s", self.url, e)
            raise StoreUnavailable(f"Database unreachable: {e}") from e
        log.info("Database connected: %s", self.engine.url.render_as_string(hide_password=True))

    def is_healthy(self) -> bool:
        try:
            self.connect()
            return True
        except StoreUnavailable:
            return False

    def create_schema(self, reset: bool = False) -> None:
        for mod in MODEL_MODULES:
            importlib.import_module(mod)
        if reset:
            log.warning("Resetting database schema")
            Base.metadata.drop_all(bind=self.engine)
        Base.metadata.create_all(bind=self.engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def dispose(self) -> None:
        self.engine.dispose()
        log.info("Database connections released")


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.db.session()
    try:
        yield db
    finally:
        db.close()
