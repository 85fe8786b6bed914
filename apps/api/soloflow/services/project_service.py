"""Project and service data access."""

import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from soloflow.db.enums import ProjectStatus
from soloflow.db.models import Project, Service, User
from soloflow.schemas.dashboard import ProjectWithOwner
from soloflow.schemas.project import ProjectCreate, ServiceCreate

logger = logging.getLogger(__name__)


# =============================================================================
# Projects
# =============================================================================

def get_user_projects(db: Session, user_id: UUID) -> list[Project]:
    """A user's projects, newest first."""
    try:
        return (
            db.query(Project)
            .filter(Project.user_id == user_id)
            .order_by(Project.created_at.desc())
            .all()
        )
    except SQLAlchemyError:
        logger.exception("Failed to load projects user=%s", user_id)
        db.rollback()
        return []


def get_project(db: Session, project_id: UUID, user_id: UUID) -> Project | None:
    """A project, scoped to its owner."""
    try:
        return db.query(Project).filter(
            Project.id == project_id,
            Project.user_id == user_id,
        ).first()
    except SQLAlchemyError:
        logger.exception("Failed to load project=%s", project_id)
        db.rollback()
        return None


def create_project(db: Session, data: ProjectCreate) -> Project | None:
    project = Project(
        name=data.name,
        description=data.description,
        status=data.status.value,
        user_id=data.user_id,
    )
    try:
        db.add(project)
        db.commit()
        db.refresh(project)
    except SQLAlchemyError:
        logger.exception("Failed to create project user=%s", data.user_id)
        db.rollback()
        return None
    return project


def update_project_status(
    db: Session,
    project_id: UUID,
    user_id: UUID,
    status: ProjectStatus,
) -> Project | None:
    """Set status; any status may follow any other."""
    project = get_project(db, project_id, user_id)
    if project is None:
        return None
    project.status = status.value
    try:
        db.commit()
        db.refresh(project)
    except SQLAlchemyError:
        logger.exception("Failed to update project=%s", project_id)
        db.rollback()
        return None
    return project


def get_all_projects(db: Session, limit: int | None = None) -> list[ProjectWithOwner]:
    """Every project with its owner's email, newest first."""
    try:
        query = (
            db.query(Project, User.email)
            .join(User, User.id == Project.user_id)
            .order_by(Project.created_at.desc())
        )
        if limit:
            query = query.limit(limit)
        rows = query.all()
    except SQLAlchemyError:
        logger.exception("Failed to list projects")
        db.rollback()
        return []
    return [ProjectWithOwner(project=project, owner_email=email) for project, email in rows]


# =============================================================================
# Services
# =============================================================================

def get_project_services(db: Session, project_id: UUID) -> list[Service]:
    try:
        return (
            db.query(Service)
            .filter(Service.project_id == project_id)
            .order_by(Service.created_at.desc())
            .all()
        )
    except SQLAlchemyError:
        logger.exception("Failed to load services project=%s", project_id)
        db.rollback()
        return []


def get_user_services(db: Session, user_id: UUID) -> list[Service]:
    """All services across a user's projects, newest first."""
    try:
        return (
            db.query(Service)
            .join(Project, Project.id == Service.project_id)
            .filter(Project.user_id == user_id)
            .order_by(Service.created_at.desc())
            .all()
        )
    except SQLAlchemyError:
        logger.exception("Failed to load services user=%s", user_id)
        db.rollback()
        return []


def create_service(db: Session, data: ServiceCreate) -> Service | None:
    service = Service(
        name=data.name,
        type=data.type.value,
        status=data.status,
        project_id=data.project_id,
        config=data.config,
    )
    try:
        db.add(service)
        db.commit()
        db.refresh(service)
    except SQLAlchemyError:
        logger.exception("Failed to create service project=%s", data.project_id)
        db.rollback()
        return None
    return service


def update_service_status(
    db: Session,
    service_id: UUID,
    user_id: UUID,
    status: str,
) -> Service | None:
    """Set a service's status string (not validated), scoped to the project owner."""
    try:
        service = (
            db.query(Service)
            .join(Project, Project.id == Service.project_id)
            .filter(Service.id == service_id, Project.user_id == user_id)
            .first()
        )
    except SQLAlchemyError:
        logger.exception("Failed to load service=%s", service_id)
        db.rollback()
        return None
    if service is None:
        return None

    service.status = status
    try:
        db.commit()
        db.refresh(service)
    except SQLAlchemyError:
        logger.exception("Failed to update service=%s", service_id)
        db.rollback()
        return None
    return service


# =============================================================================
# Counts (admin system stats)
# =============================================================================

def count_projects(db: Session) -> int:
    try:
        return db.query(Project).count()
    except SQLAlchemyError:
        logger.exception("Failed to count projects")
        db.rollback()
        return 0


def get_service_statuses(db: Session) -> list[str]:
    """Status of every service (for running/total counts)."""
    try:
        return [row[0] for row in db.query(Service.status).all()]
    except SQLAlchemyError:
        logger.exception("Failed to load service statuses")
        db.rollback()
        return []
