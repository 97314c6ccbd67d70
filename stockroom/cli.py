# Operations CLI (installed as the `stockroom` console script).
#
# Role bootstrap, run where DATABASE_URL and SECRET_KEY are set:
# - stockroom grant-role admin@example.com admin
#   Give an existing identity a role. Used to create the first admin, since
#   only admins may assign roles through the API.
# - stockroom revoke-role admin@example.com manager
#   Remove a role from an identity.

import click

from stockroom.db.session import SessionLocal
from stockroom.models.enums import AppRole
from stockroom.services.identity_service import find_identity_by_email
from stockroom.services.role_service import grant_role_elevated, revoke_role_elevated

ROLE_CHOICES = click.Choice([role.value for role in AppRole], case_sensitive=False)


def _resolve_identity(db, email: str):
    identity = find_identity_by_email(db, email)
    if not identity:
        raise click.ClickException(f"No identity registered for {email}")
    return identity


@click.group()
def cli():
    """Stockroom operations commands."""


@cli.command("grant-role")
@click.argument("email")
@click.argument("role", type=ROLE_CHOICES)
def grant_role(email: str, role: str):
    """Grant ROLE to the identity registered as EMAIL."""
    db = SessionLocal()
    try:
        identity = _resolve_identity(db, email)
        grant_role_elevated(db, user_id=identity.id, role=AppRole(role.lower()))
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
    click.echo(f"Granted {role.lower()} to {email}")


@cli.command("revoke-role")
@click.argument("email")
@click.argument("role", type=ROLE_CHOICES)
def revoke_role(email: str, role: str):
    """Revoke ROLE from the identity registered as EMAIL."""
    db = SessionLocal()
    try:
        identity = _resolve_identity(db, email)
        removed = revoke_role_elevated(db, user_id=identity.id, role=AppRole(role.lower()))
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
    if removed:
        click.echo(f"Revoked {role.lower()} from {email}")
    else:
        click.echo(f"{email} did not hold {role.lower()}")


if __name__ == "__main__":
    cli()
