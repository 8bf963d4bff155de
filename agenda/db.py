# agenda/db.py

import logging

from sqlalchemy import event
from sqlmodel import Session, SQLModel, create_engine

from agenda.config import DATABASE_ECHO, DATABASE_URL

logger = logging.getLogger(__name__)


def build_engine(url: str, **kwargs):
    connect_args = {}
    if url.startswith("sqlite"):
        connect_args["check_same_thread"] = False  # required for SQLite + FastAPI

    engine = create_engine(url, echo=DATABASE_ECHO, connect_args=connect_args, **kwargs)

    if url.startswith("sqlite"):

        @event.listens_for(engine, "connect")
        def _on_connect(dbapi_connection, _record):
            # let SQLAlchemy emit BEGIN itself instead of pysqlite
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _begin_immediate(conn):
            # SQLite ignores FOR UPDATE; take the write lock up front so
            # check-then-insert runs one transaction at a time
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


# Engine = connection to the database
engine = build_engine(DATABASE_URL)


def create_db_and_tables(bind=None):
    # models must be imported so their tables are registered on the metadata
    from agenda import models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)
    logger.info("Database tables ready")


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session
