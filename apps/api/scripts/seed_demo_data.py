"""
Seed script to create a demo client with projects, services, activity and content.
Run with: python -m scripts.seed_demo_data
"""

import os
import random

from soloflow.db.enums import (
    PublishStatus,
    ServiceStatus,
    ServiceType,
    SocialPlatform,
)
from soloflow.db.session import SessionLocal
from soloflow.schemas.auth import Identity
from soloflow.schemas.content import ContentGenerationCreate, SocialPostCreate
from soloflow.schemas.project import ProjectCreate, ServiceCreate
from soloflow.services import (
    activity_service,
    content_service,
    project_service,
    user_service,
)

PROJECT_NAMES = [
    "Portfolio Site", "Client Portal", "Newsletter", "Booking Widget",
    "Analytics Pipeline", "Mobile Backend", "Invoice Automation",
]

SERVICE_NAMES = {
    ServiceType.WEB: ["frontend", "landing", "docs"],
    ServiceType.API: ["rest-api", "webhooks", "graphql"],
    ServiceType.DATABASE: ["postgres", "analytics-db"],
    ServiceType.STORAGE: ["uploads", "backups"],
}

SAMPLE_CAPTIONS = [
    "Shipped a new feature this week. Small steps, every day.",
    "Behind the scenes of a solo launch.",
    "Three lessons from our first hundred customers.",
]


def create_projects(db, user_id, count: int) -> int:
    services_created = 0
    for name in random.sample(PROJECT_NAMES, k=min(count, len(PROJECT_NAMES))):
        project = project_service.create_project(
            db,
            ProjectCreate(name=name, description=f"Demo project: {name}", user_id=user_id),
        )
        if project is None:
            print(f"ERROR: could not create project {name}")
            continue
        activity_service.log_success(
            db,
            user_id=user_id,
            action=activity_service.PROJECT_CREATED,
            resource_type="project",
            resource_id=project.id,
        )

        for service_type in random.sample(list(ServiceType), k=2):
            service = project_service.create_service(
                db,
                ServiceCreate(
                    name=random.choice(SERVICE_NAMES[service_type]),
                    type=service_type,
                    status=random.choice(list(ServiceStatus)).value,
                    project_id=project.id,
                ),
            )
            if service is not None:
                services_created += 1
    return services_created


def create_content(db, user_id, count: int) -> None:
    for idx in range(count):
        caption = SAMPLE_CAPTIONS[idx % len(SAMPLE_CAPTIONS)]
        generation = content_service.create_generation(
            db,
            ContentGenerationCreate(
                user_id=user_id,
                original_image_url=f"https://picsum.photos/seed/soloflow{idx}/800/600",
                user_comment="Demo upload",
                generated_content={"caption": caption, "hashtags": ["#buildinpublic", "#solofounder"]},
            ),
        )
        if generation is None:
            continue
        activity_service.log_success(
            db,
            user_id=user_id,
            action=activity_service.CONTENT_GENERATED,
            resource_type="content_generation",
            resource_id=generation.id,
        )
        for platform in (SocialPlatform.LINKEDIN, SocialPlatform.TWITTER):
            post = content_service.create_social_post(
                db, SocialPostCreate(content_generation_id=generation.id, platform=platform)
            )
            if post is not None and idx % 2 == 0:
                content_service.update_social_post_status(
                    db,
                    post.id,
                    user_id,
                    PublishStatus.PUBLISHED,
                    platform_post_id=f"demo-{platform.value}-{idx}",
                )


def main():
    email = os.getenv("SEED_EMAIL", "demo@soloflow.test").lower()
    project_count = int(os.getenv("SEED_PROJECTS", "4"))
    content_count = int(os.getenv("SEED_CONTENT", "3"))

    db = SessionLocal()
    try:
        user = user_service.ensure_user(
            db,
            Identity(
                subject=f"seed-{email}",
                email=email,
                name="Demo Client",
                first_name="Demo",
                last_name="Client",
            ),
        )
        if user is None:
            print("ERROR: could not create demo user. Run `soloflow setup-db` first.")
            return
        print(f"Using user: {user.email} ({user.role})")

        services_created = create_projects(db, user.id, project_count)
        create_content(db, user.id, content_count)

        print("\nDemo data seeded successfully!")
        print(f"  - {project_count} projects created")
        print(f"  - {services_created} services created")
        print(f"  - {content_count} content generations created")
    finally:
        db.close()


if __name__ == "__main__":
    main()
