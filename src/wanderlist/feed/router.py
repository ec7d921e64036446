"""Activity feed router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from wanderlist.auth.dependencies import get_current_session
from wanderlist.config import get_settings
from wanderlist.dependencies import get_feed_synchronizer
from wanderlist.feed.formatting import build_feed_response
from wanderlist.feed.schemas import FeedResponse
from wanderlist.feed.synchronizer import ActivityFeedSynchronizer
from wanderlist.session import SessionContext

router = APIRouter(prefix="/api/v1", tags=["Feed"])


@router.get("/feed", response_model=FeedResponse)
async def get_feed(
    page: int = Query(1, ge=1),
    per_page: int | None = Query(None, ge=1, le=200),
    ctx: SessionContext = Depends(get_current_session),
    feed: ActivityFeedSynchronizer = Depends(get_feed_synchronizer),
) -> FeedResponse:
    """The caller's feed, newest first, grouped by day."""
    per_page = per_page or get_settings().feed_page_size
    entries, total = await feed.list_feed(ctx, page=page, per_page=per_page)
    return build_feed_response(entries, total=total, page=page, per_page=per_page)
