# -*- coding: utf-8 -*-
"""
SQLAlchemy setup: engine, SessionLocal, Base and the get_db dependency.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from nonprofit_portal.config import config


def build_engine(database_url):
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Writers wait on the database lock instead of failing straight away
        connect_args = {"check_same_thread": False, "timeout": 30}

    return create_engine(
        database_url,
        connect_args=connect_args,
        # Checks the connection is alive before handing it out
        pool_pre_ping=True,
        pool_recycle=3600,
    )


@event.listens_for(Engine, "connect")
def _sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless asked
    if type(dbapi_connection).__module__.startswith("sqlite3"):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine = build_engine(config.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


# Used with Depends
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
