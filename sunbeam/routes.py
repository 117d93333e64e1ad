"""
HTTP routes for the JSON API.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Literal

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    HTTPException,
    Query,
    UploadFile,
    WebSocket,
)
from fastapi.concurrency import run_in_threadpool

from sunbeam.comic import AssetSource, resolve_pages
from sunbeam.config import get_settings
from sunbeam.db import DataStoreError, DbClient
from sunbeam.dependencies import (
    get_asset_source,
    get_db_client,
    get_event_feed,
    get_storage_client,
)
from sunbeam.realtime import EventFeed, open_subscription
from sunbeam.schemas import (
    ComicPagesResponse,
    LetterCreate,
    LetterResponse,
    ListLettersResponse,
    ListPostsResponse,
    PostCreate,
    PostResponse,
    StoryResponse,
)
from sunbeam.storage import StorageClient, StorageError
from sunbeam.story import CLOSING_MESSAGE, CLOSING_TITLE, TIMELINE
from sunbeam.wall import is_image_upload, publish_post, share_post

logger = logging.getLogger(__name__)

router = APIRouter()


def _unavailable(action: str) -> HTTPException:
    return HTTPException(
        status_code=503, detail=f"Failed to {action}. Please try again."
    )


@router.get("/posts", response_model=ListPostsResponse)
def list_posts(
    order: Literal["newest", "oldest"] = Query("newest"),
    limit: int | None = Query(None, ge=1, le=500),
    db: DbClient = Depends(get_db_client),
):
    try:
        posts = db.list_posts(newest_first=order == "newest", limit=limit)
    except DataStoreError:
        logger.exception("Error fetching posts")
        raise _unavailable("load messages")
    return ListPostsResponse(posts=[post.as_dict() for post in posts])


@router.post("/posts", response_model=PostResponse, status_code=201)
def create_post(
    payload: PostCreate,
    db: DbClient = Depends(get_db_client),
    feed: EventFeed = Depends(get_event_feed),
):
    try:
        post = publish_post(
            db,
            feed,
            get_settings().posts_channel,
            content=payload.content,
            author_name=payload.author_name,
        )
    except DataStoreError:
        logger.exception("Error posting message")
        raise _unavailable("post message")
    return PostResponse(**post.as_dict())


@router.post("/posts/upload", response_model=PostResponse, status_code=201)
async def upload_post(
    file: UploadFile = File(...),
    content: str = Form(""),
    author_name: str | None = Form(None),
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
    feed: EventFeed = Depends(get_event_feed),
):
    """
    Store an image and create the post that shows it.
    """
    content = content.strip()
    if not content:
        raise HTTPException(
            status_code=400, detail="Please write a message to go with your image"
        )
    if not is_image_upload(file.filename, file.content_type):
        raise HTTPException(status_code=400, detail="Image file required")

    data = await file.read()
    try:
        post = await run_in_threadpool(
            share_post,
            db,
            storage,
            feed,
            get_settings().posts_channel,
            content=content,
            author_name=(author_name or "").strip() or None,
            image=(file.filename, data, file.content_type),
        )
    except (StorageError, DataStoreError):
        logger.exception("Error uploading image post")
        raise _unavailable("upload image")
    return PostResponse(**post.as_dict())


@router.websocket("/posts/stream")
async def stream_posts(
    websocket: WebSocket, feed: EventFeed = Depends(get_event_feed)
):
    """
    Push every newly inserted post to the socket until the client leaves.
    """
    loop = asyncio.get_running_loop()
    inbox: asyncio.Queue = asyncio.Queue()

    def deliver(payload: dict) -> None:
        loop.call_soon_threadsafe(inbox.put_nowait, payload)

    # Subscribe before accepting so no insert slips between handshake and listen.
    with open_subscription(feed, get_settings().posts_channel, deliver):
        await websocket.accept()
        receiver = asyncio.ensure_future(websocket.receive())
        try:
            while True:
                getter = asyncio.ensure_future(inbox.get())
                done, _ = await asyncio.wait(
                    {receiver, getter}, return_when=asyncio.FIRST_COMPLETED
                )
                if getter in done:
                    await websocket.send_json(getter.result())
                else:
                    getter.cancel()
                if receiver in done:
                    if receiver.result()["type"] == "websocket.disconnect":
                        break
                    receiver = asyncio.ensure_future(websocket.receive())
        finally:
            receiver.cancel()


@router.get("/letters", response_model=ListLettersResponse)
def list_letters(db: DbClient = Depends(get_db_client)):
    try:
        letters = db.list_letters()
    except DataStoreError:
        logger.exception("Error fetching letters")
        raise _unavailable("load letters")
    return ListLettersResponse(letters=[letter.as_dict() for letter in letters])


@router.get("/letters/{letter_id}", response_model=LetterResponse)
def get_letter(letter_id: str, db: DbClient = Depends(get_db_client)):
    try:
        letter = db.get_letter(letter_id)
    except DataStoreError:
        logger.exception("Error fetching letter %s", letter_id)
        raise _unavailable("load letter")
    if not letter:
        raise HTTPException(status_code=404, detail="Letter not found")
    return LetterResponse(**letter.as_dict())


@router.post("/letters", response_model=LetterResponse, status_code=201)
def create_letter(payload: LetterCreate, db: DbClient = Depends(get_db_client)):
    try:
        letter = db.create_letter(
            payload.title, payload.content, payload.author_name
        )
    except DataStoreError:
        logger.exception("Error submitting letter")
        raise _unavailable("send letter")
    return LetterResponse(**letter.as_dict())


@router.get("/comic/pages", response_model=ComicPagesResponse)
def comic_pages(source: AssetSource = Depends(get_asset_source)):
    resolution = resolve_pages(source, get_settings().comic_url_prefix)
    return ComicPagesResponse(**resolution.as_dict())


@router.get("/story", response_model=StoryResponse)
def story():
    return StoryResponse(
        items=[item.as_dict() for item in TIMELINE],
        closing_title=CLOSING_TITLE,
        closing_message=CLOSING_MESSAGE,
    )
