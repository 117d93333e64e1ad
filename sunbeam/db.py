"""
Data store access for posts and letters, backed by Postgres or kept in memory.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Optional, Protocol

from sqlalchemy import Column, Float, String, Text, create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker


class DataStoreError(RuntimeError):
    """Raised when the data store cannot complete a read or write."""


def _now() -> float:
    return time.time()


def _iso(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


@dataclass
class PostRecord:
    post_id: str
    content: str
    author_name: Optional[str] = None
    image_url: Optional[str] = None
    created_at: float = field(default_factory=_now)

    def as_dict(self) -> dict:
        return {
            "id": self.post_id,
            "content": self.content,
            "author_name": self.author_name,
            "image_url": self.image_url,
            "created_at": _iso(self.created_at),
        }


@dataclass
class LetterRecord:
    letter_id: str
    title: str
    content: str
    author_name: str
    created_at: float = field(default_factory=_now)

    def as_dict(self) -> dict:
        return {
            "id": self.letter_id,
            "title": self.title,
            "content": self.content,
            "author_name": self.author_name,
            "created_at": _iso(self.created_at),
        }


class DbClient(Protocol):
    """Interface for database access."""

    def create_post(
        self,
        content: str,
        author_name: str | None = None,
        image_url: str | None = None,
    ) -> PostRecord:
        ...

    def list_posts(
        self, *, newest_first: bool = True, limit: int | None = None
    ) -> list[PostRecord]:
        ...

    def create_letter(
        self, title: str, content: str, author_name: str
    ) -> LetterRecord:
        ...

    def list_letters(self) -> list[LetterRecord]:
        ...

    def get_letter(self, letter_id: str) -> Optional[LetterRecord]:
        ...


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.posts: Dict[str, PostRecord] = {}
        self.letters: Dict[str, LetterRecord] = {}

    def create_post(
        self,
        content: str,
        author_name: str | None = None,
        image_url: str | None = None,
    ) -> PostRecord:
        record = PostRecord(
            post_id=uuid.uuid4().hex,
            content=content,
            author_name=author_name,
            image_url=image_url,
            created_at=_now(),
        )
        self.posts[record.post_id] = record
        return record

    def list_posts(
        self, *, newest_first: bool = True, limit: int | None = None
    ) -> list[PostRecord]:
        # Id breaks ties between equal timestamps, as in the SQL ordering.
        posts = sorted(
            self.posts.values(),
            key=lambda post: (post.created_at, post.post_id),
            reverse=newest_first,
        )
        return posts[:limit] if limit is not None else posts

    def create_letter(
        self, title: str, content: str, author_name: str
    ) -> LetterRecord:
        record = LetterRecord(
            letter_id=uuid.uuid4().hex,
            title=title,
            content=content,
            author_name=author_name,
            created_at=_now(),
        )
        self.letters[record.letter_id] = record
        return record

    def list_letters(self) -> list[LetterRecord]:
        return sorted(
            self.letters.values(),
            key=lambda letter: (letter.created_at, letter.letter_id),
            reverse=True,
        )

    def get_letter(self, letter_id: str) -> Optional[LetterRecord]:
        return self.letters.get(letter_id)

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.posts.clear()
        self.letters.clear()


class PostgresDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for PostgresDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    @staticmethod
    def _to_post_record(row: "PostRow") -> PostRecord:
        return PostRecord(
            post_id=row.id,
            content=row.content,
            author_name=row.author_name,
            image_url=row.image_url,
            created_at=row.created_at,
        )

    @staticmethod
    def _to_letter_record(row: "LetterRow") -> LetterRecord:
        return LetterRecord(
            letter_id=row.id,
            title=row.title,
            content=row.content,
            author_name=row.author_name,
            created_at=row.created_at,
        )

    def create_post(
        self,
        content: str,
        author_name: str | None = None,
        image_url: str | None = None,
    ) -> PostRecord:
        try:
            with self.Session() as session:
                row = PostRow(
                    id=uuid.uuid4().hex,
                    content=content,
                    author_name=author_name,
                    image_url=image_url,
                    created_at=_now(),
                )
                session.add(row)
                session.commit()
                return self._to_post_record(row)
        except SQLAlchemyError as exc:
            raise DataStoreError("Failed to insert post") from exc

    def list_posts(
        self, *, newest_first: bool = True, limit: int | None = None
    ) -> list[PostRecord]:
        if newest_first:
            order = (PostRow.created_at.desc(), PostRow.id.desc())
        else:
            order = (PostRow.created_at.asc(), PostRow.id.asc())
        stmt = select(PostRow).order_by(*order)
        if limit is not None:
            stmt = stmt.limit(limit)
        try:
            with self.Session() as session:
                rows = session.execute(stmt).scalars().all()
                return [self._to_post_record(row) for row in rows]
        except SQLAlchemyError as exc:
            raise DataStoreError("Failed to list posts") from exc

    def create_letter(
        self, title: str, content: str, author_name: str
    ) -> LetterRecord:
        try:
            with self.Session() as session:
                row = LetterRow(
                    id=uuid.uuid4().hex,
                    title=title,
                    content=content,
                    author_name=author_name,
                    created_at=_now(),
                )
                session.add(row)
                session.commit()
                return self._to_letter_record(row)
        except SQLAlchemyError as exc:
            raise DataStoreError("Failed to insert letter") from exc

    def list_letters(self) -> list[LetterRecord]:
        stmt = select(LetterRow).order_by(
            LetterRow.created_at.desc(), LetterRow.id.desc()
        )
        try:
            with self.Session() as session:
                rows = session.execute(stmt).scalars().all()
                return [self._to_letter_record(row) for row in rows]
        except SQLAlchemyError as exc:
            raise DataStoreError("Failed to list letters") from exc

    def get_letter(self, letter_id: str) -> Optional[LetterRecord]:
        try:
            with self.Session() as session:
                row = session.get(LetterRow, letter_id)
                return self._to_letter_record(row) if row else None
        except SQLAlchemyError as exc:
            raise DataStoreError(f"Failed to load letter {letter_id}") from exc


Base = declarative_base()


class PostRow(Base):
    __tablename__ = "posts"

    id = Column(String, primary_key=True)
    content = Column(Text, nullable=False)
    author_name = Column(String, nullable=True)
    image_url = Column(String, nullable=True)
    created_at = Column(Float, nullable=False, index=True)


class LetterRow(Base):
    __tablename__ = "letters"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    author_name = Column(String, nullable=False)
    created_at = Column(Float, nullable=False, index=True)
