"""
Pydantic schemas for the JSON API.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


def _strip_required(value: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValueError("must not be blank")
    return value


def _strip_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


class PostCreate(BaseModel):
    content: str = Field(..., max_length=4000)
    author_name: Optional[str] = Field(None, max_length=120)

    @field_validator("content")
    @classmethod
    def strip_content(cls, value: str) -> str:
        return _strip_required(value)

    @field_validator("author_name")
    @classmethod
    def strip_author(cls, value: Optional[str]) -> Optional[str]:
        return _strip_optional(value)


class PostResponse(BaseModel):
    id: str
    content: str
    author_name: Optional[str] = None
    image_url: Optional[str] = None
    created_at: str


class ListPostsResponse(BaseModel):
    posts: list[PostResponse]


class LetterCreate(BaseModel):
    title: str = Field(..., max_length=200)
    content: str = Field(..., max_length=20000)
    author_name: str = Field(..., max_length=120)

    @field_validator("title", "content", "author_name")
    @classmethod
    def strip_required(cls, value: str) -> str:
        return _strip_required(value)


class LetterResponse(BaseModel):
    id: str
    title: str
    content: str
    author_name: str
    created_at: str


class ListLettersResponse(BaseModel):
    letters: list[LetterResponse]


class ComicPageResponse(BaseModel):
    filename: str
    url: str
    index: int = Field(..., ge=0)


class ComicPagesResponse(BaseModel):
    source: Literal["discovered", "fallback"]
    pages: list[ComicPageResponse]


class TimelineItemResponse(BaseModel):
    item_id: str
    title: str
    date: str
    description: str
    image: Optional[str] = None


class StoryResponse(BaseModel):
    items: list[TimelineItemResponse]
    closing_title: str
    closing_message: str
