import logging
from sqlalchemy import event
from sqlmodel import Session, SQLModel, create_engine

from app.config import DATABASE_URL

logger = logging.getLogger(__name__)

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=connect_args, pool_pre_ping=True)


def _lower(value):
    return value.lower() if isinstance(value, str) else value


def register_sqlite_functions(bind) -> None:
    # SQLite's built-in lower() only folds ASCII letters
    if bind.dialect.name != "sqlite":
        return

    @event.listens_for(bind, "connect")
    def _on_connect(dbapi_conn, _record):
        dbapi_conn.create_function("lower", 1, _lower, deterministic=True)


register_sqlite_functions(engine)


def init_db(bind=None) -> None:
    # models must be imported so their tables are registered on the metadata
    from app.models import comment, report, support, user  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
    logger.info("Database tables initialized")


def get_session():
    with Session(engine) as session:
        yield session
