from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from . import config
from .tables import metadata


def make_engine(uri: Optional[str] = None, echo: Optional[bool] = None) -> Engine:
    uri = uri or config.STOREFRONT_DB_URI
    if 'sqlite' in uri:
        args = {"check_same_thread": False}
    else:
        args = {}
    return create_engine(uri,
                         echo=config.ECHO_SQL if echo is None else echo,
                         connect_args=args)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autoflush=False, bind=engine)


def create_tables(engine: Engine) -> None:
    """Create any missing tables.

    This is a synchronous call"""
    metadata.create_all(bind=engine)
