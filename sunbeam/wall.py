"""
Write paths shared by the wall pages, the gallery and the JSON API.
"""

from __future__ import annotations

import logging
from typing import Optional

from sunbeam.db import DbClient, PostRecord
from sunbeam.realtime import EventFeed
from sunbeam.storage import StorageClient, make_object_name

logger = logging.getLogger(__name__)


def publish_post(
    db: DbClient,
    feed: EventFeed,
    channel: str,
    *,
    content: str,
    author_name: Optional[str] = None,
    image_url: Optional[str] = None,
) -> PostRecord:
    """Insert a post and notify open walls about it."""
    post = db.create_post(content, author_name=author_name, image_url=image_url)
    logger.info("Created post %s", post.post_id)
    feed.publish(channel, post.as_dict())
    return post


def store_image(
    storage: StorageClient,
    filename: str,
    data: bytes,
    content_type: Optional[str] = None,
) -> str:
    """Upload an image under a fresh object name and return its public URL."""
    object_name = make_object_name(filename)
    storage.upload_bytes(object_name, data, content_type)
    logger.info("Stored image %s (%d bytes)", object_name, len(data))
    return storage.public_url(object_name)


def share_post(
    db: DbClient,
    storage: StorageClient,
    feed: EventFeed,
    channel: str,
    *,
    content: str,
    author_name: Optional[str] = None,
    image: Optional[tuple[str, bytes, Optional[str]]] = None,
) -> PostRecord:
    """
    Store the optional ``(filename, data, content_type)`` image, then publish the post.

    Blocking; async handlers run it in the threadpool.
    """
    image_url = store_image(storage, *image) if image else None
    return publish_post(
        db,
        feed,
        channel,
        content=content,
        author_name=author_name,
        image_url=image_url,
    )


def is_image_upload(filename: Optional[str], content_type: Optional[str]) -> bool:
    if not filename:
        return False
    return (content_type or "").startswith("image/")
