from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

Base = declarative_base()


class Store:
    """数据库句柄：持有引擎和会话工厂

    Constructed explicitly and handed to the app, so every test can run
    against its own database.
    """

    def __init__(self, url: str, echo: bool = False, engine: Engine | None = None):
        self.url = url
        if engine is None:
            connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
            engine = create_engine(url, echo=echo, connect_args=connect_args)
        self.engine = engine
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_tables(self) -> None:
        """创建所有表"""
        # tables register on Base.metadata at import time
        from cms.models import category, post, post_category, user  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_tables(self) -> None:
        from cms.models import category, post, post_category, user  # noqa: F401

        Base.metadata.drop_all(bind=self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        session = self.session_factory()
        try:
            yield session
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_session(request: Request) -> Iterator[Session]:
    """获取数据库会话"""
    session = get_store(request).session_factory()
    try:
        yield session
    finally:
        session.close()


def is_unique_violation(exc: IntegrityError) -> bool:
    """True when the driver reports a unique-constraint failure."""
    text = str(exc.orig).lower()
    return "unique constraint failed" in text or "duplicate key" in text
