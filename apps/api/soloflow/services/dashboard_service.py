"""Dashboard aggregation - fans out independent reads and assembles page data."""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, TypeVar
from uuid import UUID

import anyio
from sqlalchemy.orm import sessionmaker

from soloflow.db.enums import ServiceStatus, ServiceType
from soloflow.db.models import Service
from soloflow.schemas.dashboard import (
    AdminDashboardData,
    DashboardData,
    SystemStats,
    UserStats,
)
from soloflow.services import activity_service, project_service, user_service

logger = logging.getLogger(__name__)

T = TypeVar("T")

RECENT_PROJECTS_LIMIT = 5
RECENT_ACTIVITY_LIMIT = 10
SERVICES_LIMIT = 10
ADMIN_RECENT_LIMIT = 10

# Simulated usage per service, by type
USAGE_BY_SERVICE_TYPE = {
    ServiceType.DATABASE.value: 25,
    ServiceType.API.value: 15,
}
DEFAULT_SERVICE_USAGE = 10


async def _fetch(
    session_factory: sessionmaker,
    fn: Callable[..., T],
    *args: Any,
    **kwargs: Any,
) -> T:
    """Run one data-access call in a worker thread with its own session."""

    def _call() -> T:
        with session_factory() as db:
            return fn(db, *args, **kwargs)

    return await anyio.to_thread.run_sync(_call)


def compute_total_usage(services: list[Service]) -> int:
    return sum(USAGE_BY_SERVICE_TYPE.get(s.type, DEFAULT_SERVICE_USAGE) for s in services)


def count_running(statuses: list[str]) -> int:
    return sum(1 for status in statuses if status == ServiceStatus.RUNNING.value)


async def get_user_stats(session_factory: sessionmaker, user_id: UUID) -> UserStats:
    """Project count, running services, simulated usage and last activity time."""
    projects, services, latest = await asyncio.gather(
        _fetch(session_factory, project_service.get_user_projects, user_id),
        _fetch(session_factory, project_service.get_user_services, user_id),
        _fetch(session_factory, activity_service.get_user_activity, user_id, limit=1),
    )
    return UserStats(
        projects_count=len(projects),
        active_services=count_running([s.status for s in services]),
        total_usage=compute_total_usage(services),
        last_activity=latest[0].created_at if latest else datetime.now(timezone.utc),
    )


async def get_dashboard_data(
    session_factory: sessionmaker,
    provider_subject: str,
) -> DashboardData | None:
    """
    Everything the client dashboard renders for one identity.

    Returns:
        None when no user exists for the identity
    """
    user = await _fetch(session_factory, user_service.get_user_by_identity_id, provider_subject)
    if user is None:
        logger.info("No user row for identity, dashboard unavailable")
        return None

    stats, projects, activity, services = await asyncio.gather(
        get_user_stats(session_factory, user.id),
        _fetch(session_factory, project_service.get_user_projects, user.id),
        _fetch(session_factory, activity_service.get_user_activity, user.id, limit=RECENT_ACTIVITY_LIMIT),
        _fetch(session_factory, project_service.get_user_services, user.id),
    )
    return DashboardData(
        user=user,
        stats=stats,
        recent_projects=projects[:RECENT_PROJECTS_LIMIT],
        recent_activity=activity,
        services=services[:SERVICES_LIMIT],
    )


async def get_system_stats(session_factory: sessionmaker) -> SystemStats:
    users, projects, statuses = await asyncio.gather(
        _fetch(session_factory, user_service.count_users),
        _fetch(session_factory, project_service.count_projects),
        _fetch(session_factory, project_service.get_service_statuses),
    )
    return SystemStats(
        total_users=users,
        total_projects=projects,
        total_services=len(statuses),
        active_services=count_running(statuses),
    )


async def get_admin_dashboard_data(session_factory: sessionmaker) -> AdminDashboardData:
    system_stats, users, projects = await asyncio.gather(
        get_system_stats(session_factory),
        _fetch(session_factory, user_service.get_all_users, limit=ADMIN_RECENT_LIMIT),
        _fetch(session_factory, project_service.get_all_projects, limit=ADMIN_RECENT_LIMIT),
    )
    return AdminDashboardData(
        system_stats=system_stats,
        recent_users=users,
        recent_projects=projects,
    )
