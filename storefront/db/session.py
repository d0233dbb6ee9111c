from typing import Optional
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, create_engine, Session
from storefront.core.config import settings


def build_engine(database_url: str) -> Engine:
    # check_same_thread is needed for SQLite, since handlers run in a threadpool
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, connect_args=connect_args)


engine = build_engine(settings.DATABASE_URL)

def get_session():
    with Session(engine) as session:
        yield session

def create_db_and_tables(bind: Optional[Engine] = None):
    # Register every table with SQLModel metadata before creating them
    import storefront.models  # noqa: F401
    SQLModel.metadata.create_all(bind or engine)
