"""
Collection descriptors for the video platform gateway

Documents are stored as sent by the client. The gateway only knows, per
collection, the field it looks documents up by and the timestamp field it
stamps on insert.

Collections:
- users -> keyed by userId, stamped joinedDate
- videos -> keyed by videoId, stamped uploadDate
- comments -> keyed by commentId (listed by videoId), stamped commentDate
- playlists -> keyed by playlistId (listed by userId), stamped playlistDate
- subscriptions -> keyed by subscriber, stamped subscriptionDate
"""

from pydantic import BaseModel, Field


class Resource(BaseModel):
    collection: str = Field(..., description="MongoDB collection name")
    key: str = Field(..., description="Field documents are matched on")
    timestamp: str = Field(..., description="Server-set creation date field")
    singular: str

    @property
    def label(self) -> str:
        return self.singular.capitalize()

    def not_found(self) -> str:
        return f"{self.label} not found"

    def added(self, inserted_id: str) -> str:
        return f"{self.label} added with ID: {inserted_id}"


def updated(count: int) -> str:
    return f"{count} document(s) updated"


def deleted(count: int) -> str:
    return f"{count} document(s) deleted"


USERS = Resource(collection="users", key="userId", timestamp="joinedDate", singular="user")
VIDEOS = Resource(collection="videos", key="videoId", timestamp="uploadDate", singular="video")
COMMENTS = Resource(collection="comments", key="commentId", timestamp="commentDate", singular="comment")
PLAYLISTS = Resource(collection="playlists", key="playlistId", timestamp="playlistDate", singular="playlist")
SUBSCRIPTIONS = Resource(collection="subscriptions", key="subscriber", timestamp="subscriptionDate", singular="subscription")
