from sqlmodel import create_engine, SQLModel, Session

from ragebot import config
from ragebot import models  # noqa: F401 registers the tables

connect_args = {}
if config.DATABASE_URL.startswith("sqlite"):
    # requests are served from a threadpool
    connect_args = {"check_same_thread": False}

engine = create_engine(config.DATABASE_URL, connect_args=connect_args)

def create_tables(engine=engine):
    SQLModel.metadata.create_all(engine)

def get_session():
    with Session(engine) as session:
        yield session
