"""
Server-rendered pages of the tribute site.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

from sunbeam.comic import AssetSource, ReaderState, resolve_pages
from sunbeam.config import get_settings
from sunbeam.db import DataStoreError, DbClient
from sunbeam.dependencies import (
    get_asset_source,
    get_db_client,
    get_event_feed,
    get_storage_client,
)
from sunbeam.realtime import EventFeed
from sunbeam.storage import StorageClient, StorageError
from sunbeam.story import CLOSING_MESSAGE, CLOSING_TITLE, TIMELINE
from sunbeam.views import load_state
from sunbeam.wall import is_image_upload, share_post

logger = logging.getLogger(__name__)

APP_ROOT = Path(__file__).resolve().parent
TEMPLATES = Jinja2Templates(directory=str(APP_ROOT / "templates"))

SNIPPET_LENGTH = 150

NAV_ITEMS = (
    ("/", "Home"),
    ("/story", "Our Story"),
    ("/gallery", "Gallery"),
    ("/letters", "Letters"),
    ("/comic", "The Comic"),
    ("/tributes", "Tribute Wall"),
)

WALLS = {
    "messages": {
        "path": "/messages",
        "title": "Community Wall",
        "subtitle": "Share your thoughts, memories, and love for Gauta",
        "empty_title": "No Messages Yet",
        "empty_text": "Be the first to share a message on the community wall!",
        "posted": "Your message has been added to the community wall",
        "failed": "Failed to post message. Please try again.",
    },
    "tributes": {
        "path": "/tributes",
        "title": "Tribute Wall",
        "subtitle": "Leave a tribute, a memory, or a photo for Gauta",
        "empty_title": "No Tributes Yet",
        "empty_text": "Be the first to leave a tribute!",
        "posted": "Your message has been added to the tribute wall",
        "failed": "Failed to post tribute. Please try again.",
    },
}


def snippet(content: str, max_length: int = SNIPPET_LENGTH) -> str:
    if len(content) <= max_length:
        return content
    return content[:max_length] + "..."


def format_date(timestamp: float, long: bool = False) -> str:
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    if long:
        return f"{moment:%B} {moment.day}, {moment.year}"
    return f"{moment.month}/{moment.day}/{moment.year}"


TEMPLATES.env.filters["snippet"] = snippet
TEMPLATES.env.filters["date"] = format_date

router = APIRouter()


def render(
    request: Request,
    template_name: str,
    context: Optional[dict] = None,
    status_code: int = 200,
):
    context = dict(context or {})
    context["nav_items"] = NAV_ITEMS
    context["active_path"] = request.url.path
    context.setdefault("notice", None)
    return TEMPLATES.TemplateResponse(
        request, template_name, context, status_code=status_code
    )


def notice(title: str, description: str, variant: str = "default") -> dict:
    return {"title": title, "description": description, "variant": variant}


@router.get("/")
def home(
    request: Request,
    db: DbClient = Depends(get_db_client),
    source: AssetSource = Depends(get_asset_source),
):
    settings = get_settings()
    recent = load_state(
        lambda: db.list_posts(limit=settings.recent_posts_limit),
        failure_message="Recent messages are unavailable right now.",
    )
    comic = resolve_pages(source, settings.comic_url_prefix)
    cover = comic.pages[0] if comic.pages else None
    return render(request, "home.html", {"recent": recent, "cover": cover})


@router.get("/story")
def story(request: Request):
    return render(
        request,
        "story.html",
        {
            "items": TIMELINE,
            "closing_title": CLOSING_TITLE,
            "closing_message": CLOSING_MESSAGE,
        },
    )


def _gallery_context(db: DbClient, sort: str) -> dict:
    state = load_state(
        lambda: [
            post
            for post in db.list_posts(newest_first=sort == "newest")
            if post.image_url
        ],
        failure_message="Failed to load gallery images",
    )
    return {"state": state, "sort": sort}


@router.get("/gallery")
def gallery(
    request: Request,
    sort: Literal["newest", "oldest"] = Query("newest"),
    added: bool = Query(False),
    db: DbClient = Depends(get_db_client),
):
    context = _gallery_context(db, sort)
    if added:
        context["notice"] = notice(
            "Success!", "Your memory has been added to the gallery"
        )
    return render(request, "gallery.html", context)


@router.post("/gallery")
async def add_memory(
    request: Request,
    content: str = Form(""),
    author_name: str = Form(""),
    image: Optional[UploadFile] = File(None),
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
    feed: EventFeed = Depends(get_event_feed),
):
    content = content.strip()
    form = {"content": content, "author_name": author_name}
    error = None
    if image is None or not is_image_upload(image.filename, image.content_type):
        error = notice("Missing Image", "Please choose an image to upload", "destructive")
    elif not content:
        error = notice("Missing Description", "Please describe this memory", "destructive")
    if error:
        context = await run_in_threadpool(_gallery_context, db, "newest")
        context.update(notice=error, form=form, show_form=True)
        return render(request, "gallery.html", context, status_code=400)

    data = await image.read()
    try:
        await run_in_threadpool(
            share_post,
            db,
            storage,
            feed,
            get_settings().posts_channel,
            content=content,
            author_name=author_name.strip() or None,
            image=(image.filename, data, image.content_type),
        )
    except (StorageError, DataStoreError):
        logger.exception("Error uploading gallery image")
        context = await run_in_threadpool(_gallery_context, db, "newest")
        context.update(
            notice=notice("Error", "Failed to upload image", "destructive"),
            form=form,
            show_form=True,
        )
        return render(request, "gallery.html", context, status_code=503)
    return RedirectResponse("/gallery?added=1", status_code=303)


@router.get("/letters")
def letters(
    request: Request,
    sent: bool = Query(False),
    db: DbClient = Depends(get_db_client),
):
    state = load_state(db.list_letters, failure_message="Failed to load letters")
    context = {"state": state}
    if sent:
        context["notice"] = notice(
            "Letter Sent!", "Your heartfelt letter has been shared with love"
        )
    return render(request, "letters.html", context)


@router.get("/letters/{letter_id}")
def letter_detail(
    letter_id: str, request: Request, db: DbClient = Depends(get_db_client)
):
    try:
        letter = db.get_letter(letter_id)
    except DataStoreError:
        logger.exception("Error fetching letter %s", letter_id)
        letter = None
    status_code = 200 if letter else 404
    return render(
        request, "letter_detail.html", {"letter": letter}, status_code=status_code
    )


@router.get("/write-letter")
def write_letter(request: Request):
    return render(request, "write_letter.html", {"form": {}})


@router.post("/write-letter")
def send_letter(
    request: Request,
    title: str = Form(""),
    content: str = Form(""),
    author_name: str = Form(""),
    db: DbClient = Depends(get_db_client),
):
    form = {
        "title": title.strip(),
        "content": content.strip(),
        "author_name": author_name.strip(),
    }
    missing = [name for name, value in form.items() if not value]
    if missing:
        return render(
            request,
            "write_letter.html",
            {
                "form": form,
                "missing": missing,
                "notice": notice(
                    "Missing Information", "Please fill in all fields", "destructive"
                ),
            },
            status_code=400,
        )
    try:
        letter = db.create_letter(form["title"], form["content"], form["author_name"])
    except DataStoreError:
        logger.exception("Error submitting letter")
        return render(
            request,
            "write_letter.html",
            {
                "form": form,
                "notice": notice(
                    "Error", "Failed to send letter. Please try again.", "destructive"
                ),
            },
            status_code=503,
        )
    logger.info("Created letter %s", letter.letter_id)
    return RedirectResponse("/letters?sent=1", status_code=303)


@router.get("/comic")
def comic(
    request: Request,
    page: Optional[int] = Query(None),
    source: AssetSource = Depends(get_asset_source),
):
    """
    Grid of all pages, or the reader at ``page`` (1-based) when given.
    """
    resolution = resolve_pages(source, get_settings().comic_url_prefix)
    state = ReaderState.from_query(
        len(resolution.pages), page - 1 if page is not None else None
    )
    return render(
        request,
        "comic.html",
        {"pages": resolution.pages, "reader": state},
    )


def _wall_page(
    request: Request, wall: str, db: DbClient, status_code: int = 200, **extra
):
    state = load_state(
        db.list_posts, failure_message="Failed to load messages"
    )
    context = {
        "wall": WALLS[wall],
        "state": state,
        "stream_path": f"{get_settings().api_prefix}/posts/stream",
        "form": {},
    }
    context.update(extra)
    return render(request, "wall.html", context, status_code=status_code)


async def _post_to_wall(
    request: Request,
    wall: str,
    content: str,
    author_name: str,
    image: Optional[UploadFile],
    db: DbClient,
    storage: StorageClient,
    feed: EventFeed,
):
    copy = WALLS[wall]
    content = content.strip()
    form = {"content": content, "author_name": author_name}
    has_image = image is not None and bool(image.filename)

    if not content:
        message = (
            notice("Add a Message", "Please write a message to go with your image", "destructive")
            if has_image
            else notice("Missing Message", "Please write a message", "destructive")
        )
        return await run_in_threadpool(
            _wall_page, request, wall, db, status_code=400, notice=message, form=form
        )
    if has_image and not is_image_upload(image.filename, image.content_type):
        return await run_in_threadpool(
            _wall_page,
            request,
            wall,
            db,
            status_code=400,
            notice=notice("Error", "Only image files can be shared", "destructive"),
            form=form,
        )

    upload = None
    if has_image:
        upload = (image.filename, await image.read(), image.content_type)
    try:
        await run_in_threadpool(
            share_post,
            db,
            storage,
            feed,
            get_settings().posts_channel,
            content=content,
            author_name=author_name.strip() or None,
            image=upload,
        )
    except (StorageError, DataStoreError):
        logger.exception("Error posting to %s wall", wall)
        return await run_in_threadpool(
            _wall_page,
            request,
            wall,
            db,
            status_code=503,
            notice=notice("Error", copy["failed"], "destructive"),
            form=form,
        )
    return RedirectResponse(f"{copy['path']}?posted=1", status_code=303)


@router.get("/messages")
def messages(
    request: Request,
    posted: bool = Query(False),
    db: DbClient = Depends(get_db_client),
):
    extra = {}
    if posted:
        extra["notice"] = notice("Message Posted!", WALLS["messages"]["posted"])
    return _wall_page(request, "messages", db, **extra)


@router.post("/messages")
async def post_message(
    request: Request,
    content: str = Form(""),
    author_name: str = Form(""),
    image: Optional[UploadFile] = File(None),
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
    feed: EventFeed = Depends(get_event_feed),
):
    return await _post_to_wall(
        request, "messages", content, author_name, image, db, storage, feed
    )


@router.get("/tributes")
def tributes(
    request: Request,
    posted: bool = Query(False),
    db: DbClient = Depends(get_db_client),
):
    extra = {}
    if posted:
        extra["notice"] = notice("Tribute Posted!", WALLS["tributes"]["posted"])
    return _wall_page(request, "tributes", db, **extra)


@router.post("/tributes")
async def post_tribute(
    request: Request,
    content: str = Form(""),
    author_name: str = Form(""),
    image: Optional[UploadFile] = File(None),
    db: DbClient = Depends(get_db_client),
    storage: StorageClient = Depends(get_storage_client),
    feed: EventFeed = Depends(get_event_feed),
):
    return await _post_to_wall(
        request, "tributes", content, author_name, image, db, storage, feed
    )
