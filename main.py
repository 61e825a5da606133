import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from starlette.concurrency import run_in_threadpool

from config import get_settings
from database import (
    Store,
    connect,
    create_document,
    delete_document,
    get_document,
    get_documents,
    get_store,
    push_to_array,
    update_document,
)
from errors import NotFound, StoreError, ValidationError, register_exception_handlers, store_errors
from schemas import COMMENTS, PLAYLISTS, SUBSCRIPTIONS, USERS, VIDEOS, deleted, updated

logger = logging.getLogger(__name__)

router = APIRouter()


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(settings.log_level)
    owns_store = app.state.store is None
    if owns_store:
        # A failed connection raises here and uvicorn aborts startup
        app.state.store = await run_in_threadpool(connect, settings)
    yield
    logger.info("Shutting down")
    if owns_store:
        app.state.store.close()
        app.state.store = None


# -------------------- Request bodies --------------------

async def json_body(request: Request) -> Any:
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        return await request.json()
    except ValueError:
        raise ValidationError("Invalid JSON body")


def json_object(body: Any = Depends(json_body)) -> Dict[str, Any]:
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def text(message: str, status_code: int = 200) -> PlainTextResponse:
    return PlainTextResponse(message, status_code=status_code)


# -------------------- Basic Routes --------------------
@router.get("/")
def read_root():
    return {"message": "Video platform gateway is running"}


@router.get("/test")
def database_status(store: Store = Depends(get_store)):
    settings = get_settings()
    info = {
        "backend": "running",
        "database_connected": False,
        "database_name": settings.database_name,
        "collections": [],
    }
    try:
        if store is not None and store.ping():
            info["database_connected"] = True
            info["collections"] = store.db.list_collection_names()
    except Exception as e:
        info["error"] = str(e)
    return info


# -------------------- Users --------------------
@router.get("/users")
def list_users(store: Store = Depends(get_store)):
    with store_errors("Error fetching users"):
        return get_documents(store.users)


@router.get("/users/{user_id}")
def get_user(user_id: str, store: Store = Depends(get_store)):
    with store_errors("Error fetching user"):
        user = get_document(store.users, {USERS.key: user_id})
    if not user:
        raise NotFound(USERS.not_found())
    return user


@router.post("/users")
def add_user(payload: Dict[str, Any] = Depends(json_object), store: Store = Depends(get_store)):
    with store_errors("Error adding user"):
        inserted_id = create_document(store.users, payload, USERS.timestamp)
    return text(USERS.added(inserted_id), 201)


@router.patch("/users/{user_id}")
def update_user(user_id: str, payload: Dict[str, Any] = Depends(json_object), store: Store = Depends(get_store)):
    with store_errors("Error updating user"):
        count = update_document(store.users, {USERS.key: user_id}, payload)
    return text(updated(count))


@router.delete("/users/{user_id}")
def delete_user(user_id: str, store: Store = Depends(get_store)):
    with store_errors("Error deleting user"):
        count = delete_document(store.users, {USERS.key: user_id})
    return text(deleted(count))


# -------------------- Videos --------------------
@router.get("/videos")
def list_videos(store: Store = Depends(get_store)):
    with store_errors("Error fetching videos"):
        return get_documents(store.videos)


@router.get("/videos/{video_id}")
def get_video(video_id: str, store: Store = Depends(get_store)):
    with store_errors("Error fetching video"):
        video = get_document(store.videos, {VIDEOS.key: video_id})
    if not video:
        raise NotFound(VIDEOS.not_found())
    return video


@router.post("/videos")
def add_video(payload: Dict[str, Any] = Depends(json_object), store: Store = Depends(get_store)):
    with store_errors("Error adding video"):
        inserted_id = create_document(store.videos, payload, VIDEOS.timestamp)
    return text(VIDEOS.added(inserted_id), 201)


@router.patch("/videos/{video_id}/likes")
def update_video(video_id: str, payload: Dict[str, Any] = Depends(json_object), store: Store = Depends(get_store)):
    # Sets whatever fields are sent; nothing is incremented
    with store_errors("Error updating video"):
        count = update_document(store.videos, {VIDEOS.key: video_id}, payload)
    return text(updated(count))


@router.delete("/videos/{video_id}")
def delete_video(video_id: str, store: Store = Depends(get_store)):
    with store_errors("Error deleting video"):
        count = delete_document(store.videos, {VIDEOS.key: video_id})
    return text(deleted(count))


# -------------------- Comments --------------------
@router.get("/videos/{video_id}/comments")
def list_comments(video_id: str, store: Store = Depends(get_store)):
    with store_errors("Error fetching comments"):
        comments = get_documents(store.comments, {"videoId": video_id})
    if not comments:
        raise NotFound("No comments found for this video")
    return comments


@router.post("/comments")
def add_comment(payload: Dict[str, Any] = Depends(json_object), store: Store = Depends(get_store)):
    with store_errors("Error adding comment"):
        inserted_id = create_document(store.comments, payload, COMMENTS.timestamp)
    return text(COMMENTS.added(inserted_id), 201)


@router.patch("/comments/{comment_id}/likes")
def update_comment(comment_id: str, payload: Dict[str, Any] = Depends(json_object), store: Store = Depends(get_store)):
    with store_errors("Error updating comment"):
        count = update_document(store.comments, {COMMENTS.key: comment_id}, payload)
    return text(updated(count))


@router.delete("/comments/{comment_id}")
def delete_comment(comment_id: str, store: Store = Depends(get_store)):
    with store_errors("Error deleting comment"):
        count = delete_document(store.comments, {COMMENTS.key: comment_id})
    return text(deleted(count))


# -------------------- Playlists --------------------
@router.get("/playlists/{user_id}")
def list_playlists(user_id: str, store: Store = Depends(get_store)):
    with store_errors("Error fetching playlists"):
        playlists = get_documents(store.playlists, {"userId": user_id})
    if not playlists:
        raise NotFound("No playlists found for this user")
    return playlists


@router.post("/playlists")
def add_playlist(payload: Dict[str, Any] = Depends(json_object), store: Store = Depends(get_store)):
    with store_errors("Error adding playlist"):
        inserted_id = create_document(store.playlists, payload, PLAYLISTS.timestamp)
    return text(PLAYLISTS.added(inserted_id), 201)


@router.put("/playlists/{playlist_id}/videos")
def add_playlist_video(playlist_id: str, payload: Any = Depends(json_body), store: Store = Depends(get_store)):
    with store_errors("Error updating playlist"):
        count = push_to_array(store.playlists, {PLAYLISTS.key: playlist_id}, "videos", payload)
    return text(updated(count))


@router.delete("/playlists/{playlist_id}")
def delete_playlist(playlist_id: str, store: Store = Depends(get_store)):
    with store_errors("Error deleting playlist"):
        count = delete_document(store.playlists, {PLAYLISTS.key: playlist_id})
    return text(deleted(count))


# -------------------- Subscriptions --------------------
@router.get("/subscriptions/{subscriber}")
def list_subscriptions(subscriber: str, store: Store = Depends(get_store)):
    with store_errors("Error fetching subscriptions"):
        subscriptions = get_documents(store.subscriptions, {SUBSCRIPTIONS.key: subscriber})
    if not subscriptions:
        raise NotFound("No subscriptions found for this user")
    return subscriptions


@router.post("/subscriptions")
def add_subscription(payload: Dict[str, Any] = Depends(json_object), store: Store = Depends(get_store)):
    with store_errors("Error adding subscription"):
        inserted_id = create_document(store.subscriptions, payload, SUBSCRIPTIONS.timestamp)
    return text(SUBSCRIPTIONS.added(inserted_id), 201)


# -------------------- App --------------------
def create_app(store: Optional[Store] = None) -> FastAPI:
    """Build the app. With no store given, the lifespan connects using the settings."""
    settings = get_settings()
    app = FastAPI(title="Video Platform Gateway", version="1.0.0", lifespan=lifespan)
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)
    app.include_router(router)
    return app


app = create_app()


def main() -> None:
    import uvicorn

    settings = get_settings()
    setup_logging(settings.log_level)
    try:
        store = connect(settings)
    except StoreError:
        sys.exit(1)
    try:
        uvicorn.run(create_app(store), host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    finally:
        store.close()


if __name__ == "__main__":
    main()
