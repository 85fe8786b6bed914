"""Dashboard aggregates handed to page templates."""

from dataclasses import dataclass, field
from datetime import datetime

from soloflow.db.models import Activity, Project, Service, User


@dataclass
class UserStats:
    projects_count: int
    active_services: int
    total_usage: int
    last_activity: datetime


@dataclass
class DashboardData:
    user: User
    stats: UserStats
    recent_projects: list[Project] = field(default_factory=list)
    recent_activity: list[Activity] = field(default_factory=list)
    services: list[Service] = field(default_factory=list)


@dataclass
class SystemStats:
    total_users: int
    total_projects: int
    total_services: int
    active_services: int


@dataclass
class ProjectWithOwner:
    project: Project
    owner_email: str


@dataclass
class AdminDashboardData:
    system_stats: SystemStats
    recent_users: list[User] = field(default_factory=list)
    recent_projects: list[ProjectWithOwner] = field(default_factory=list)
