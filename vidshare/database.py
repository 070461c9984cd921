from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from vidshare.config import get_settings

settings = get_settings()


def build_engine(url: str, **kwargs) -> Engine:
    """Create an engine. For SQLite, enable FKs and take over BEGIN so SAVEPOINTs behave."""
    connect_args = kwargs.pop("connect_args", {})
    is_sqlite = url.startswith("sqlite")
    if is_sqlite:
        # SQLite needs check_same_thread=False for FastAPI
        connect_args.setdefault("check_same_thread", False)

    engine = create_engine(url, connect_args=connect_args, echo=False, **kwargs)

    if is_sqlite:
        @event.listens_for(engine, "connect")
        def _on_connect(dbapi_connection, _record):
            # pysqlite's own transaction handling breaks SAVEPOINT
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _on_begin(conn):
            conn.exec_driver_sql("BEGIN")

    return engine


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def dispose_engine() -> None:
    """Graceful shutdown: close pooled connections."""
    engine.dispose()
