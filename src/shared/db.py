"""SQLAlchemy engine, session and schema helpers."""

from datetime import UTC, datetime

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    pass


def utcnow() -> datetime:
    """Current time as naive UTC, the form every timestamp column stores."""
    return datetime.now(UTC).replace(tzinfo=None)


def as_naive_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def build_engine(database_url: str, echo: bool = False) -> Engine:
    kwargs = {"echo": echo}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite+pysqlite://"):
            # One shared connection, otherwise every session sees its own empty database
            kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, expire_on_commit=False)


def _register_models() -> None:
    """Import every model module so its tables are attached to ``Base.metadata``."""
    import catalogue.product.product  # noqa: F401
    import identity.user.user  # noqa: F401
    import ordering.cart.cart  # noqa: F401
    import ordering.order.order  # noqa: F401


def setup_db(engine: Engine) -> None:
    """Create all tables."""
    _register_models()
    Base.metadata.create_all(engine)


def drop_db(engine: Engine) -> None:
    """Drop all tables."""
    _register_models()
    Base.metadata.drop_all(engine)


def reset_db(engine: Engine) -> None:
    """Delete every row while keeping the schema."""
    _register_models()
    with engine.begin() as connection:
        for table in reversed(Base.metadata.sorted_tables):
            connection.execute(table.delete())
