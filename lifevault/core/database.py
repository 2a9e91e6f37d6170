import os

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import Engine, make_url
from sqlmodel import SQLModel, create_engine, Session


def build_engine(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        # check_same_thread=False is needed only for SQLite
        connect_args = {"check_same_thread": False}
        path = make_url(database_url).database
        if path and path != ":memory:":
            os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    engine = create_engine(database_url, connect_args=connect_args)

    if database_url.startswith("sqlite"):
        # SQLite leaves foreign keys (and ON DELETE CASCADE) off unless asked per connection
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine

def create_db_and_tables(engine: Engine):
    SQLModel.metadata.create_all(engine)

def get_session(request: Request):
    with Session(request.app.state.engine) as session:
        yield session
