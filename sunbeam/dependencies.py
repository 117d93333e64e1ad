"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

from pathlib import Path

from sunbeam.comic import AssetSource, DirectoryAssetSource
from sunbeam.config import get_settings
from sunbeam.db import DbClient, InMemoryDbClient, PostgresDbClient
from sunbeam.realtime import EventFeed, InMemoryEventFeed, RedisEventFeed
from sunbeam.storage import InMemoryStorageClient, S3StorageClient, StorageClient

_db_client: DbClient | None = None
_storage_client: StorageClient | None = None
_event_feed: EventFeed | None = None


def get_db_client() -> DbClient:
    """
    Return a singleton DB client so posts and letters persist across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _db_client = InMemoryDbClient()
    else:
        _db_client = PostgresDbClient(settings.database_url)
    return _db_client


def get_storage_client() -> StorageClient:
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.media_bucket:
        _storage_client = InMemoryStorageClient()
    else:
        _storage_client = S3StorageClient(
            bucket=settings.media_bucket,
            region=settings.s3_region or "",
            endpoint=settings.s3_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
            public_base_url=settings.media_public_base_url or "",
        )
    return _storage_client


def get_event_feed() -> EventFeed:
    """
    Return a singleton feed so every open wall hears every insert.
    """
    global _event_feed
    if _event_feed:
        return _event_feed

    settings = get_settings()
    if settings.redis_url and not settings.use_in_memory_backends:
        _event_feed = RedisEventFeed(url=settings.redis_url)
    else:
        _event_feed = InMemoryEventFeed()
    return _event_feed


def get_asset_source() -> AssetSource:
    settings = get_settings()
    return DirectoryAssetSource(
        directory=Path(settings.comic_dir), url_prefix=settings.comic_url_prefix
    )
