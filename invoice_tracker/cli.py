"""``flask invoices ...`` operational commands."""

import click
from flask import current_app
from flask.cli import AppGroup, with_appcontext
from werkzeug.security import generate_password_hash

from invoice_tracker import db
from invoice_tracker.models import User
from invoice_tracker.services.reconciliation import reconcile_overdue_report

invoices_cli = AppGroup("invoices", help="Invoice maintenance commands.")


@invoices_cli.command("mark-overdue")
@click.option(
    "--date",
    "on_date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Reconcile as of this date instead of today (YYYY-MM-DD).",
)
@with_appcontext
def mark_overdue_command(on_date):
    """Mark every lapsed sent invoice as overdue."""
    report = reconcile_overdue_report(on_date.date() if on_date else None)
    click.echo(f"Marked {report.transitioned} invoices as overdue")
    if report.failed:
        click.echo(
            f"Failed to update {report.failed} invoices: "
            + ", ".join(str(i) for i in report.failed_ids),
            err=True,
        )


@invoices_cli.command("create-user")
@click.option("--email", required=True)
@click.option("--password", required=True)
@click.option("--first-name", required=True)
@click.option("--last-name", required=True)
@with_appcontext
def create_user_command(email, password, first_name, last_name):
    """Create an active account that can own invoices."""
    if User.query.filter_by(email=email.strip().lower()).first():
        raise click.ClickException(f"An account for {email} already exists")
    user = User(
        email=email,
        password=generate_password_hash(password),
        first_name=first_name,
        last_name=last_name,
        active=True,
    )
    db.session.add(user)
    db.session.commit()
    current_app.logger.info("Created user %s", user.id)
    click.echo(f"Created user {user.email}")
