"""Tests for follow/unfollow and the linked new_follower entries."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from wanderlist.errors import NotFound, PreconditionFailed, StoreUnavailable
from wanderlist.gateway.sql import SqlGateway
from wanderlist.social.follow_manager import FollowManager


async def _follower_entries(gateway: SqlGateway, owner_id: str) -> list[dict]:
    return await gateway.query("activity_feed", {"user_id": owner_id, "activity_type": "new_follower"})


class TestFollow:
    @pytest.mark.asyncio
    async def test_follow_creates_relationship_entry_and_counts(
        self, seed, gateway: SqlGateway, follows: FollowManager
    ):
        state = await follows.follow(seed.alice, seed.bob.user_id)

        assert state.is_following is True
        assert state.target_counts.followers == 1
        assert state.viewer_counts.following == 1

        relationship = await gateway.get_one("follows", {"follower_id": seed.alice.user_id})
        entries = await _follower_entries(gateway, seed.bob.user_id)
        assert len(entries) == 1
        assert entries[0]["follow_id"] == relationship["id"]
        assert entries[0]["actor_id"] == seed.alice.user_id
        assert entries[0]["item_name"] == "alice"

    @pytest.mark.asyncio
    async def test_follow_twice_is_noop(self, seed, gateway: SqlGateway, follows: FollowManager):
        await follows.follow(seed.alice, seed.bob.user_id)
        state = await follows.follow(seed.alice, seed.bob.user_id)

        assert state.is_following is True
        assert state.target_counts.followers == 1
        assert await gateway.count("follows", {}) == 1
        assert len(await _follower_entries(gateway, seed.bob.user_id)) == 1

    @pytest.mark.asyncio
    async def test_self_follow_rejected(self, seed, gateway: SqlGateway, follows: FollowManager):
        with pytest.raises(PreconditionFailed) as exc:
            await follows.follow(seed.alice, seed.alice.user_id)
        assert exc.value.code == "self_follow"
        assert await gateway.count("follows", {}) == 0

    @pytest.mark.asyncio
    async def test_unknown_target(self, seed, follows: FollowManager):
        with pytest.raises(NotFound):
            await follows.follow(seed.alice, "99999999-9999-4999-8999-999999999999")

    @pytest.mark.asyncio
    async def test_name_snapshot_falls_back_to_profile(self, seed, gateway: SqlGateway, follows: FollowManager):
        await follows.follow(seed.carol, seed.alice.user_id)
        entries = await _follower_entries(gateway, seed.alice.user_id)
        assert entries[0]["item_name"] == "Carolina"

    @pytest.mark.asyncio
    async def test_missing_entry_is_restored_on_refollow(
        self, seed, gateway: SqlGateway, follows: FollowManager, monkeypatch
    ):
        record = follows.feed.record_new_follower
        monkeypatch.setattr(follows.feed, "record_new_follower", AsyncMock(side_effect=StoreUnavailable("down")))
        with pytest.raises(StoreUnavailable):
            await follows.follow(seed.alice, seed.bob.user_id)
        assert await gateway.count("follows", {}) == 1
        assert await _follower_entries(gateway, seed.bob.user_id) == []

        monkeypatch.setattr(follows.feed, "record_new_follower", record)
        await follows.follow(seed.alice, seed.bob.user_id)
        assert len(await _follower_entries(gateway, seed.bob.user_id)) == 1

    @pytest.mark.asyncio
    async def test_follow_created_concurrently_is_not_a_conflict(
        self, seed, gateway: SqlGateway, follows: FollowManager, monkeypatch
    ):
        await gateway.insert("follows", {"follower_id": seed.alice.user_id, "following_id": seed.bob.user_id})
        existing = await follows._get_relationship(seed.alice.user_id, seed.bob.user_id)
        monkeypatch.setattr(follows, "_get_relationship", AsyncMock(side_effect=[None, existing]))

        state = await follows.follow(seed.alice, seed.bob.user_id)

        assert state.is_following is True
        assert state.target_counts.followers == 1
        assert state.viewer_counts.following == 1
        assert await gateway.count("follows", {}) == 1


class TestUnfollow:
    @pytest.mark.asyncio
    async def test_unfollow_removes_relationship_and_entry(self, seed, gateway: SqlGateway, follows: FollowManager):
        await follows.follow(seed.alice, seed.bob.user_id)

        state = await follows.unfollow(seed.alice, seed.bob.user_id)

        assert state.is_following is False
        assert state.target_counts.followers == 0
        assert state.viewer_counts.following == 0
        assert await gateway.count("follows", {}) == 0
        assert await _follower_entries(gateway, seed.bob.user_id) == []

    @pytest.mark.asyncio
    async def test_refollow_creates_new_distinct_entry(self, seed, gateway: SqlGateway, follows: FollowManager):
        await follows.follow(seed.alice, seed.bob.user_id)
        [first] = await _follower_entries(gateway, seed.bob.user_id)
        await follows.unfollow(seed.alice, seed.bob.user_id)

        await follows.follow(seed.alice, seed.bob.user_id)

        [second] = await _follower_entries(gateway, seed.bob.user_id)
        assert second["id"] != first["id"]
        assert second["follow_id"] != first["follow_id"]

    @pytest.mark.asyncio
    async def test_unfollow_when_not_following(self, seed, follows: FollowManager):
        state = await follows.unfollow(seed.alice, seed.bob.user_id)
        assert state.is_following is False
        assert state.target_counts.followers == 0

    @pytest.mark.asyncio
    async def test_unfollow_only_removes_own_entry(self, seed, gateway: SqlGateway, follows: FollowManager):
        await follows.follow(seed.alice, seed.bob.user_id)
        await follows.follow(seed.carol, seed.bob.user_id)

        await follows.unfollow(seed.alice, seed.bob.user_id)

        entries = await _follower_entries(gateway, seed.bob.user_id)
        assert [e["actor_id"] for e in entries] == [seed.carol.user_id]
        assert (await follows.get_counts(seed.bob.user_id)).followers == 1


class TestListings:
    @pytest.mark.asyncio
    async def test_followers_and_following(self, seed, follows: FollowManager):
        await follows.follow(seed.alice, seed.bob.user_id)
        await follows.follow(seed.carol, seed.bob.user_id)
        await follows.follow(seed.bob, seed.alice.user_id)

        followers = await follows.list_followers(seed.bob.user_id)
        following = await follows.list_following(seed.bob.user_id)

        assert {p.username for p in followers} == {"alice", "Carolina"}
        assert [p.username for p in following] == ["alice"]
        assert await follows.is_following(seed.bob.user_id, seed.alice.user_id)
        assert not await follows.is_following(seed.alice.user_id, seed.carol.user_id)
