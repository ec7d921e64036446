"""Shared FastAPI dependencies: one gateway per request, managers built on it."""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from wanderlist.config import get_settings
from wanderlist.database import get_session as _get_session
from wanderlist.feed.synchronizer import ActivityFeedSynchronizer
from wanderlist.gateway.base import PersistenceGateway
from wanderlist.gateway.sql import SqlGateway
from wanderlist.objectives.catalog import ObjectiveCatalog
from wanderlist.objectives.membership import MembershipManager
from wanderlist.progress.tracker import ProgressTracker
from wanderlist.social.follow_manager import FollowManager
from wanderlist.social.profile_service import ProfileService
from wanderlist.storage.blob_store import BaseBlobStore, get_blob_store

get_db = _get_session


async def get_gateway(db: AsyncSession = Depends(get_db)) -> PersistenceGateway:
    return SqlGateway(db)


async def get_blob_store_dep() -> BaseBlobStore:
    return get_blob_store()


async def get_feed_synchronizer(gateway: PersistenceGateway = Depends(get_gateway)) -> ActivityFeedSynchronizer:
    return ActivityFeedSynchronizer(gateway)


async def get_progress_tracker(
    gateway: PersistenceGateway = Depends(get_gateway),
    feed: ActivityFeedSynchronizer = Depends(get_feed_synchronizer),
) -> ProgressTracker:
    return ProgressTracker(gateway, feed)


async def get_objective_catalog(gateway: PersistenceGateway = Depends(get_gateway)) -> ObjectiveCatalog:
    return ObjectiveCatalog(gateway)


async def get_membership_manager(
    gateway: PersistenceGateway = Depends(get_gateway),
    tracker: ProgressTracker = Depends(get_progress_tracker),
    feed: ActivityFeedSynchronizer = Depends(get_feed_synchronizer),
) -> MembershipManager:
    return MembershipManager(gateway, tracker, feed)


async def get_follow_manager(
    gateway: PersistenceGateway = Depends(get_gateway),
    feed: ActivityFeedSynchronizer = Depends(get_feed_synchronizer),
) -> FollowManager:
    return FollowManager(gateway, feed)


async def get_profile_service(
    gateway: PersistenceGateway = Depends(get_gateway),
    follows: FollowManager = Depends(get_follow_manager),
    blob_store: BaseBlobStore = Depends(get_blob_store_dep),
) -> ProfileService:
    return ProfileService(gateway, follows, blob_store, get_settings())
