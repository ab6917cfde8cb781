"""Response schemas for the bookmarks proxy."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class BookmarkAuthor(BaseModel):
    username: Optional[str] = None
    name: Optional[str] = None


class BookmarkView(BaseModel):
    """A single bookmarked post shaped for API consumers."""

    id: str
    text: Optional[str] = None
    created_at: Optional[str] = None
    author: Optional[BookmarkAuthor] = None
    url: str = Field(..., description="Permalink to the post on x.com.")
    metrics: Optional[Dict[str, Any]] = None


class BookmarkListResponse(BaseModel):
    count: int
    bookmarks: List[BookmarkView]


class StatusResponse(BaseModel):
    authenticated: bool
    server: str = "running"
    bookmarks_endpoint: str = "/bookmarks?limit=10"


__all__ = [
    "BookmarkAuthor",
    "BookmarkListResponse",
    "BookmarkView",
    "StatusResponse",
]
