"""Feed presentation helpers: message text, relative times, day grouping."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

from wanderlist.feed.reconcile import COMPLETED_OBJECTIVE, NEW_FOLLOWER, VISITED_PLACE, as_utc
from wanderlist.feed.schemas import FeedDayResponse, FeedEntry, FeedItemResponse, FeedResponse


def describe(entry: FeedEntry) -> str:
    """Human-readable text for a feed entry."""
    if entry.activity_type == COMPLETED_OBJECTIVE:
        return f"You completed {entry.objective_title}"
    if entry.activity_type == VISITED_PLACE:
        return f"You visited {entry.item_name} in {entry.objective_title}"
    if entry.activity_type == NEW_FOLLOWER:
        return f"{entry.item_name or 'Someone'} started following you"
    return ""


def target_path(entry: FeedEntry) -> str | None:
    """Where tapping the entry leads; follower entries have no destination."""
    if entry.activity_type == NEW_FOLLOWER or not entry.objective_id:
        return None
    return f"/objective/{entry.objective_id}"


def relative_time(created_at: datetime, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    hours = int((now - as_utc(created_at)).total_seconds() // 3600)
    if hours < 1:
        return "Just now"
    if hours < 24:
        return f"{hours}h ago"
    days = hours // 24
    if days == 1:
        return "1 day ago"
    if days < 7:
        return f"{days} days ago"
    return f"{created_at.day} {created_at.strftime('%b')}"


def day_header(day: date, today: date | None = None) -> str:
    today = today or datetime.now(timezone.utc).date()
    if day == today:
        return "Today"
    if day == today - timedelta(days=1):
        return "Yesterday"
    return f"{day.strftime('%A')}, {day.day} {day.strftime('%B')}"


def group_by_day(entries: list[FeedEntry]) -> list[tuple[date, list[FeedEntry]]]:
    """Group newest-first entries by UTC calendar day, keeping order."""
    groups: dict[date, list[FeedEntry]] = {}
    for entry in entries:
        groups.setdefault(entry.created_at.astimezone(timezone.utc).date(), []).append(entry)
    return list(groups.items())


def build_feed_response(
    entries: list[FeedEntry],
    total: int | None = None,
    page: int = 1,
    per_page: int | None = None,
    now: datetime | None = None,
) -> FeedResponse:
    """One feed page grouped by day. ``total`` counts every entry, not just this page."""
    now = now or datetime.now(timezone.utc)
    days = [
        FeedDayResponse(
            day=day,
            header=day_header(day, now.date()),
            entries=[
                FeedItemResponse(
                    id=entry.id,
                    type=entry.activity_type,
                    text=describe(entry),
                    relative_time=relative_time(entry.created_at, now),
                    target_path=target_path(entry),
                    timestamp=entry.created_at,
                )
                for entry in group
            ],
        )
        for day, group in group_by_day(entries)
    ]
    return FeedResponse(
        days=days,
        total=len(entries) if total is None else total,
        page=page,
        per_page=per_page or len(entries),
    )
