"""Tests for public profiles and user search."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from wanderlist.config import get_settings
from wanderlist.errors import NotFound, StoreUnavailable
from wanderlist.gateway.sql import SqlGateway
from wanderlist.social.follow_manager import FollowManager
from wanderlist.social.profile_service import ProfileService
from wanderlist.storage.blob_store import LocalBlobStore


@pytest.fixture
def blob_store(tmp_path) -> LocalBlobStore:
    return LocalBlobStore(root=tmp_path, base_url="http://blobs.test", signing_key="test-key")


@pytest.fixture
def profiles(gateway: SqlGateway, follows: FollowManager, blob_store: LocalBlobStore) -> ProfileService:
    return ProfileService(gateway, follows, blob_store, get_settings())


class TestPublicProfile:
    @pytest.mark.asyncio
    async def test_profile_with_signed_avatar_and_counts(self, seed, follows: FollowManager, profiles: ProfileService):
        await follows.follow(seed.bob, seed.alice.user_id)

        profile = await profiles.get_public_profile(seed.bob, seed.alice.user_id)

        assert profile.username == "alice"
        assert profile.city == "Lisbon"
        assert profile.avatar_url.startswith(f"http://blobs.test/avatars/{seed.alice.user_id}/avatar.png?")
        assert "signature=" in profile.avatar_url
        assert profile.counts.followers == 1
        assert profile.is_following is True
        assert profile.is_me is False

    @pytest.mark.asyncio
    async def test_own_profile(self, seed, profiles: ProfileService):
        profile = await profiles.get_public_profile(seed.bob, seed.bob.user_id)
        assert profile.is_me is True
        assert profile.is_following is False
        assert profile.avatar_url is None

    @pytest.mark.asyncio
    async def test_unknown_profile(self, seed, profiles: ProfileService):
        with pytest.raises(NotFound):
            await profiles.get_public_profile(seed.alice, "99999999-9999-4999-8999-999999999999")

    @pytest.mark.asyncio
    async def test_signing_failure_hides_avatar(self, seed, profiles: ProfileService, monkeypatch):
        monkeypatch.setattr(profiles.blob_store, "get_signed_url", AsyncMock(side_effect=StoreUnavailable("down")))
        profile = await profiles.get_public_profile(seed.bob, seed.alice.user_id)
        assert profile.avatar_url is None


class TestUpdateProfile:
    @pytest.mark.asyncio
    async def test_update_username_and_city(self, seed, profiles: ProfileService):
        profile = await profiles.update_profile(seed.bob, username=" bobby ", city="Braga")
        assert profile.username == "bobby"
        assert profile.city == "Braga"

    @pytest.mark.asyncio
    async def test_blank_city_clears_it(self, seed, profiles: ProfileService):
        profile = await profiles.update_profile(seed.alice, city="  ")
        assert profile.city is None
        assert profile.username == "alice"


class TestSearch:
    @pytest.mark.asyncio
    async def test_case_insensitive_substring(self, seed, profiles: ProfileService):
        results = await profiles.search_profiles(seed.alice, "CAR")
        assert [r.username for r in results] == ["Carolina"]

    @pytest.mark.asyncio
    async def test_blank_query_returns_nothing(self, seed, profiles: ProfileService):
        assert await profiles.search_profiles(seed.alice, "   ") == []

    @pytest.mark.asyncio
    async def test_wildcards_are_literal(self, seed, profiles: ProfileService):
        assert await profiles.search_profiles(seed.alice, "%") == []

    @pytest.mark.asyncio
    async def test_results_have_signed_avatars(self, seed, profiles: ProfileService):
        [alice] = await profiles.search_profiles(seed.bob, "ali")
        assert alice.avatar_url.startswith("http://blobs.test/avatars/")
