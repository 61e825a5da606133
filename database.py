import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from fastapi import Request
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from config import Settings
from errors import StoreError
from schemas import COMMENTS, PLAYLISTS, SUBSCRIPTIONS, USERS, VIDEOS

logger = logging.getLogger(__name__)


class Store:
    """One MongoDB database and a handle per collection, shared by every request."""

    def __init__(self, db, client: Optional[MongoClient] = None):
        self.client = client
        self.db = db
        self.users = db[USERS.collection]
        self.videos = db[VIDEOS.collection]
        self.comments = db[COMMENTS.collection]
        self.playlists = db[PLAYLISTS.collection]
        self.subscriptions = db[SUBSCRIPTIONS.collection]

    def ping(self) -> bool:
        try:
            self.db.command("ping")
        except PyMongoError:
            return False
        return True

    def close(self) -> None:
        if self.client is not None:
            self.client.close()


def connect(settings: Settings) -> Store:
    client = MongoClient(settings.database_url)
    try:
        # MongoClient connects lazily; ping so a bad endpoint fails here
        client.admin.command("ping")
    except PyMongoError as exc:
        client.close()
        logger.error("Error connecting to MongoDB at %s: %s", settings.database_url, exc)
        raise StoreError(f"Error connecting to MongoDB: {exc}") from exc
    logger.info("Connected to MongoDB (database %r)", settings.database_name)
    return Store(client[settings.database_name], client=client)


def get_store(request: Request) -> Store:
    return request.app.state.store


# -------------------- Serialization --------------------

def serialize(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not doc:
        return doc
    d = {**doc}
    for k, v in list(d.items()):
        if isinstance(v, ObjectId):
            d[k] = str(v)
        elif isinstance(v, datetime):
            d[k] = v.isoformat()
    return d


# -------------------- Collection operations --------------------

def get_documents(collection, filter_dict: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
    return [serialize(doc) for doc in collection.find(filter_dict or {})]


def get_document(collection, filter_dict: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    return serialize(collection.find_one(filter_dict))


def create_document(collection, data: Dict[str, Any], stamp_field: str) -> str:
    """Insert the client's fields plus a server timestamp; returns the generated id."""
    doc = {**data, stamp_field: datetime.now(timezone.utc)}
    result = collection.insert_one(doc)
    return str(result.inserted_id)


def update_document(collection, filter_dict: Dict[str, Any], fields: Dict[str, Any]) -> int:
    result = collection.update_one(filter_dict, {"$set": fields})
    return result.modified_count


def push_to_array(collection, filter_dict: Dict[str, Any], field: str, value: Any) -> int:
    result = collection.update_one(filter_dict, {"$push": {field: value}})
    return result.modified_count


def delete_document(collection, filter_dict: Dict[str, Any]) -> int:
    result = collection.delete_one(filter_dict)
    return result.deleted_count
