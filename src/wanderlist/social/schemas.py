"""Pydantic schemas for follows and public profiles."""

from __future__ import annotations

from pydantic import BaseModel, Field


class FollowCounts(BaseModel):
    """Follower/following counters, recomputed from follows rows at load time."""

    followers: int = 0
    following: int = 0

    def add_follower(self) -> None:
        self.followers += 1

    def remove_follower(self) -> None:
        self.followers = max(0, self.followers - 1)

    def add_following(self) -> None:
        self.following += 1

    def remove_following(self) -> None:
        self.following = max(0, self.following - 1)


class FollowState(BaseModel):
    target_id: str
    is_following: bool
    target_counts: FollowCounts
    viewer_counts: FollowCounts


class ProfileSummary(BaseModel):
    id: str
    username: str
    avatar_url: str | None = None


class PublicProfile(BaseModel):
    id: str
    username: str
    city: str | None = None
    avatar_url: str | None = None
    counts: FollowCounts
    is_following: bool = False
    is_me: bool = False


class ProfileUpdateRequest(BaseModel):
    username: str | None = Field(None, min_length=1, max_length=64)
    city: str | None = Field(None, max_length=128)
