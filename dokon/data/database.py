# dokon/data/database.py
from sqlalchemy import JSON, Text, create_engine
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

Base = declarative_base()

# text[] on postgres, JSON everywhere else (sqlite in tests)
StringList = JSON().with_variant(ARRAY(Text), "postgresql")


def make_engine(url: str):
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.rstrip("/") == "sqlite:":
            kwargs["poolclass"] = StaticPool
        return create_engine(url, **kwargs)
    return create_engine(url, pool_pre_ping=True)


def make_session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(engine):
    # registers every model on Base.metadata before create_all
    import dokon.data.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
