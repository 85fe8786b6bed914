"""CLI tools for SoloFlow administration."""

import sys

import click

from soloflow.core.config import settings
from soloflow.core.structured_logging import configure_logging
from soloflow.db.enums import Role
from soloflow.db.session import SessionLocal, engine
from soloflow.services import provisioning_service


@click.group()
def cli():
    """SoloFlow CLI tools."""
    configure_logging()


def _echo_results(results: list[provisioning_service.StepResult], ok_label: str) -> int:
    failures = 0
    for result in results:
        if result.ok:
            click.echo(f"✓ {result.table}: {ok_label}")
        else:
            failures += 1
            click.echo(f"❌ {result.table}: {result.detail or 'error'}")
    return failures


def _admin_client():
    if not settings.SUPABASE_URL or not settings.SUPABASE_SERVICE_ROLE_KEY:
        click.echo("❌ SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set (or use --direct)")
        sys.exit(1)
    return provisioning_service.build_admin_client(
        settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY
    )


@cli.command()
@click.option("--direct", is_flag=True, help="Run the SQL over DATABASE_URL instead of the RPC endpoint")
def setup_db(direct: bool):
    """
    Create every table, then verify each one is reachable.

    Statements run one by one; a failure is reported and the next
    statement still runs.

    Example:
        soloflow setup-db
        soloflow setup-db --direct
    """
    if direct:
        created = provisioning_service.create_tables_direct(engine)
    else:
        with _admin_client() as client:
            created = provisioning_service.create_tables_via_rpc(client)
    _echo_results(created, "created")

    click.echo()
    click.echo("Verifying tables...")
    if direct:
        checked = provisioning_service.check_tables_direct(engine)
    else:
        with _admin_client() as client:
            checked = provisioning_service.check_tables_via_rest(client)
    failures = _echo_results(checked, "present")

    click.echo()
    if failures:
        click.echo(f"⚠ {failures} table(s) not reachable")
    else:
        click.echo("✓ Database ready")


@cli.command()
@click.option("--direct", is_flag=True, help="Probe over DATABASE_URL instead of the REST endpoint")
def check_db(direct: bool):
    """Report which tables exist, without creating anything."""
    if direct:
        checked = provisioning_service.check_tables_direct(engine)
    else:
        with _admin_client() as client:
            checked = provisioning_service.check_tables_via_rest(client)
    failures = _echo_results(checked, "present")
    if failures:
        sys.exit(1)


@cli.command()
@click.argument("email")
def promote_admin(email: str):
    """
    Give an existing user the admin role.

    Example:
        soloflow promote-admin owner@example.com
    """
    from soloflow.services import user_service

    db = SessionLocal()
    try:
        user = user_service.get_user_by_email(db, email.lower())
        if not user:
            click.echo(f"❌ User not found: {email}")
            click.echo("→ The user must sign in once before being promoted")
            sys.exit(1)
        if user.role == Role.ADMIN.value:
            click.echo(f"✓ {email} is already an admin")
            return
        if user_service.set_role(db, user, Role.ADMIN) is None:
            click.echo(f"❌ Could not update role for {email}")
            sys.exit(1)
        click.echo(f"✓ Promoted {email} to admin")
    finally:
        db.close()


if __name__ == "__main__":
    cli()
