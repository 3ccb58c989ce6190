"""Relational schema for the durable directory store."""

from __future__ import annotations

import typing as typ
import uuid

from sqlalchemy import JSON, Integer, MetaData, String, Text, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from agentdir.directory.models import UNKNOWN

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

DEFAULT_TABLE_NAME = "projects"


class Base(DeclarativeBase):
    """Base declarative class for directory models."""


class ProjectRow(Base):
    """One directory entry as stored in the durable tier.

    Uniqueness by URL is enforced by the application, not by a constraint,
    so deployments created by other tools remain compatible.
    """

    __tablename__ = DEFAULT_TABLE_NAME

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text, default="", server_default="")
    stars: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    forks: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    url: Mapped[str] = mapped_column(String(512), index=True)
    owner: Mapped[str] = mapped_column(String(255), default="", server_default="")
    avatar: Mapped[str] = mapped_column(String(512), default="", server_default="")
    language: Mapped[str] = mapped_column(
        String(64), default=UNKNOWN, server_default=UNKNOWN
    )
    updated: Mapped[str] = mapped_column(String(64), default="", server_default="")
    topics: Mapped[list[str]] = mapped_column(
        JSON, default=list, server_default=text("'[]'")
    )
    license: Mapped[str] = mapped_column(
        String(64), default=UNKNOWN, server_default=UNKNOWN
    )


async def init_directory_storage(
    engine: AsyncEngine, *, table_name: str = DEFAULT_TABLE_NAME
) -> None:
    """Create the directory table if it does not already exist.

    Parameters
    ----------
    engine:
        Async SQLAlchemy engine bound to the target database.
    table_name:
        Name of the table to create; deployments may rename it.

    Examples
    --------
    >>> from sqlalchemy.ext.asyncio import create_async_engine
    >>> engine = create_async_engine("sqlite+aiosqlite:///directory.db")
    >>> await init_directory_storage(engine)

    """
    if table_name == DEFAULT_TABLE_NAME:
        metadata = Base.metadata
    else:
        metadata = MetaData()
        ProjectRow.__table__.to_metadata(metadata, name=table_name)

    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
