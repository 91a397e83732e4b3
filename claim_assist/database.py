from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool

from claim_assist.config import settings


class Base(DeclarativeBase):
    pass


def build_engine(database_url: str | None = None, echo: bool | None = None) -> Engine:
    """Create an engine; in-memory SQLite shares one connection across threads."""
    url = database_url or settings.database_url
    kwargs: dict = {
        "echo": settings.database_echo if echo is None else echo,
        "future": True,
    }
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True
    return create_engine(url, **kwargs)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
        future=True,
    )


def init_db(engine: Engine) -> None:
    """Create all tables registered on Base (idempotent)."""
    # registers the mapped classes on Base.metadata
    from claim_assist import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
