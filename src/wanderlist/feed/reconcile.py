"""Pure feed derivation: which entries must exist for a given progress state.

``reconcile_feed`` compares the objective-scoped entries that are currently
stored with the user's progress on that objective and returns the inserts
and deletes that bring the feed back in line:

- one visited_place entry per visited item, none for unvisited items;
- exactly one completed_objective entry while every item is visited and the
  objective is held, none otherwise;
- nothing at all once the objective is no longer held.

Duplicates (left behind by double taps or partial failures) collapse onto
the oldest entry. Entries are never edited, only inserted or deleted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

VISITED_PLACE = "visited_place"
COMPLETED_OBJECTIVE = "completed_objective"
NEW_FOLLOWER = "new_follower"

OBJECTIVE_SCOPED_TYPES = (VISITED_PLACE, COMPLETED_OBJECTIVE)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive timestamps (SQLite drops the offset)."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class ItemRef:
    id: str
    name: str


@dataclass(frozen=True)
class ProgressState:
    """A user's progress on one objective."""

    user_id: str
    objective_id: str
    objective_title: str
    total_items: int
    held: bool
    items: tuple[ItemRef, ...]
    visited_item_ids: frozenset[str]

    @property
    def effective_visited(self) -> frozenset[str]:
        """Visited ids restricted to this objective's items (empty when not held)."""
        if not self.held:
            return frozenset()
        return self.visited_item_ids & {item.id for item in self.items}

    @property
    def completed_count(self) -> int:
        return len(self.visited_item_ids & {item.id for item in self.items})

    @property
    def is_complete(self) -> bool:
        return self.held and self.total_items > 0 and self.completed_count >= self.total_items


@dataclass(frozen=True)
class StoredEntry:
    id: str
    activity_type: str
    objective_item_id: str | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class FeedState:
    """Objective-scoped entries currently stored for one user."""

    entries: tuple[StoredEntry, ...] = ()

    def of_type(self, activity_type: str) -> list[StoredEntry]:
        """Entries of one kind, oldest first."""
        matching = [e for e in self.entries if e.activity_type == activity_type]
        return sorted(matching, key=lambda e: (as_utc(e.created_at) or _EPOCH, e.id))


@dataclass(frozen=True)
class EntryDraft:
    """An entry to insert; objective fields come from the ProgressState."""

    activity_type: str
    objective_item_id: str | None = None
    item_name: str | None = None


@dataclass(frozen=True)
class FeedPlan:
    to_insert: tuple[EntryDraft, ...] = field(default_factory=tuple)
    to_delete: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return not self.to_insert and not self.to_delete


def reconcile_feed(previous: FeedState, current: ProgressState) -> FeedPlan:
    """Compute the writes that make ``previous`` consistent with ``current``."""
    to_insert: list[EntryDraft] = []
    to_delete: list[str] = []
    visited = current.effective_visited

    kept: set[str] = set()
    for entry in previous.of_type(VISITED_PLACE):
        item_id = entry.objective_item_id
        if item_id in visited and item_id not in kept:
            kept.add(item_id)
        else:
            to_delete.append(entry.id)

    for item in current.items:
        if item.id in visited and item.id not in kept:
            to_insert.append(EntryDraft(VISITED_PLACE, objective_item_id=item.id, item_name=item.name))

    completed = previous.of_type(COMPLETED_OBJECTIVE)
    if current.is_complete:
        if completed:
            to_delete.extend(e.id for e in completed[1:])
        else:
            to_insert.append(EntryDraft(COMPLETED_OBJECTIVE))
    else:
        to_delete.extend(e.id for e in completed)

    return FeedPlan(to_insert=tuple(to_insert), to_delete=tuple(to_delete))
