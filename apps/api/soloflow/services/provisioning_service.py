"""
Table provisioning for the hosted database.

The schema is created by sending a fixed, ordered list of raw SQL
statements either through the hosted database's ``exec_sql`` RPC endpoint
or directly through the SQLAlchemy engine. Every statement is attempted;
a failure is logged and the next statement still runs. There is no
transaction across statements and no rollback.
"""

import logging
from dataclasses import dataclass

import httpx
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 30.0

# Order matters: referenced tables first.
TABLE_STATEMENTS: list[tuple[str, str]] = [
    ("users", """
        CREATE TABLE IF NOT EXISTS users (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            email VARCHAR(255) UNIQUE NOT NULL,
            first_name VARCHAR(255),
            last_name VARCHAR(255),
            role VARCHAR(20) NOT NULL DEFAULT 'client',
            auth_provider VARCHAR(20) NOT NULL DEFAULT 'google',
            provider_subject VARCHAR(255) NOT NULL,
            permissions JSONB NOT NULL DEFAULT '[]'::jsonb,
            subscription_plan VARCHAR(50) NOT NULL DEFAULT 'free',
            subscription_expires_at TIMESTAMPTZ,
            stripe_customer_id VARCHAR(255),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_users_identity UNIQUE (auth_provider, provider_subject)
        );
    """),
    ("user_profiles", """
        CREATE TABLE IF NOT EXISTS user_profiles (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID UNIQUE NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            full_name VARCHAR(255),
            avatar_url VARCHAR(500),
            bio TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
    """),
    ("projects", """
        CREATE TABLE IF NOT EXISTS projects (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(255) NOT NULL,
            description TEXT,
            status VARCHAR(20) NOT NULL DEFAULT 'active',
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
        CREATE INDEX IF NOT EXISTS idx_projects_user_created ON projects (user_id, created_at);
    """),
    ("services", """
        CREATE TABLE IF NOT EXISTS services (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(255) NOT NULL,
            type VARCHAR(20) NOT NULL,
            status VARCHAR(50) NOT NULL DEFAULT 'stopped',
            project_id UUID NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
            config JSONB NOT NULL DEFAULT '{}'::jsonb,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
        CREATE INDEX IF NOT EXISTS idx_services_project_created ON services (project_id, created_at);
    """),
    ("activities", """
        CREATE TABLE IF NOT EXISTS activities (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            action VARCHAR(100) NOT NULL,
            resource_type VARCHAR(50),
            resource_id VARCHAR(255),
            details JSONB,
            status VARCHAR(20) NOT NULL DEFAULT 'success',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
        CREATE INDEX IF NOT EXISTS idx_activities_user_created ON activities (user_id, created_at);
    """),
    ("content_generations", """
        CREATE TABLE IF NOT EXISTS content_generations (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            original_image_url VARCHAR(500) NOT NULL,
            extracted_text TEXT,
            user_comment TEXT,
            generated_content JSONB NOT NULL,
            status VARCHAR(50) NOT NULL DEFAULT 'completed',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
    """),
    ("social_posts", """
        CREATE TABLE IF NOT EXISTS social_posts (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            content_generation_id UUID NOT NULL REFERENCES content_generations(id) ON DELETE CASCADE,
            platform VARCHAR(50) NOT NULL,
            status VARCHAR(50) NOT NULL,
            platform_post_id VARCHAR(255),
            error_message TEXT,
            published_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        );
    """),
]

TABLE_NAMES = [name for name, _ in TABLE_STATEMENTS]


@dataclass
class StepResult:
    table: str
    ok: bool
    detail: str = ""


# =============================================================================
# Hosted admin endpoint (REST)
# =============================================================================

def build_admin_client(
    base_url: str,
    service_key: str,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """HTTP client authenticated with the service key."""
    return httpx.Client(
        base_url=base_url.rstrip("/"),
        headers={
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Content-Type": "application/json",
        },
        timeout=REQUEST_TIMEOUT_SECONDS,
        transport=transport,
    )


def create_tables_via_rpc(client: httpx.Client) -> list[StepResult]:
    """Send each CREATE statement to the exec_sql RPC; log and continue on failure."""
    results: list[StepResult] = []
    for table, sql in TABLE_STATEMENTS:
        logger.info("Creating table %s", table)
        try:
            response = client.post("/rest/v1/rpc/exec_sql", json={"sql": sql})
        except httpx.HTTPError as e:
            logger.warning("exec_sql request failed table=%s error=%s", table, e)
            results.append(StepResult(table, False, str(e)))
            continue
        if response.is_success:
            results.append(StepResult(table, True))
        else:
            logger.warning("exec_sql returned HTTP %s for table=%s", response.status_code, table)
            results.append(StepResult(table, False, f"HTTP {response.status_code}"))
    return results


def check_tables_via_rest(client: httpx.Client) -> list[StepResult]:
    """Probe each table with a one-row select through the REST API."""
    results: list[StepResult] = []
    for table in TABLE_NAMES:
        try:
            response = client.get(f"/rest/v1/{table}", params={"select": "*", "limit": "1"})
        except httpx.HTTPError as e:
            logger.warning("Probe failed table=%s error=%s", table, e)
            results.append(StepResult(table, False, str(e)))
            continue
        if response.is_success:
            results.append(StepResult(table, True))
        elif response.status_code == 404:
            results.append(StepResult(table, False, "missing"))
        else:
            results.append(StepResult(table, False, f"HTTP {response.status_code}"))
    return results


# =============================================================================
# Direct connection (SQLAlchemy engine)
# =============================================================================

def create_tables_direct(engine: Engine) -> list[StepResult]:
    """Execute each CREATE statement on its own connection; log and continue on failure."""
    results: list[StepResult] = []
    for table, sql in TABLE_STATEMENTS:
        logger.info("Creating table %s", table)
        try:
            with engine.begin() as conn:
                conn.exec_driver_sql(sql)
        except SQLAlchemyError as e:
            logger.warning("CREATE failed table=%s error=%s", table, e)
            results.append(StepResult(table, False, str(e.__cause__ or e)))
            continue
        results.append(StepResult(table, True))
    return results


def check_tables_direct(engine: Engine) -> list[StepResult]:
    results: list[StepResult] = []
    for table in TABLE_NAMES:
        try:
            with engine.connect() as conn:
                conn.execute(text(f"SELECT * FROM {table} LIMIT 1"))
        except SQLAlchemyError as e:
            logger.warning("Probe failed table=%s error=%s", table, e)
            results.append(StepResult(table, False, str(e.__cause__ or e)))
            continue
        results.append(StepResult(table, True))
    return results
