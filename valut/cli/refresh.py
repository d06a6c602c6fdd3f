"""CLI for running a single refresh pass outside the scheduler."""

from __future__ import annotations

from datetime import datetime
from typing import cast

import click
from flask import current_app
from flask.cli import with_appcontext

from valut.errors import PassError
from valut.services.refresh import RateRefresher
from valut.utils.dates import utc_now


@click.command("refresh-rates")
@click.option(
    "--date",
    "day",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Reconcile only this date instead of the trailing window",
)
@with_appcontext
def refresh_rates(day: datetime | None) -> None:
    """Fetch the CBR feed and reconcile stored rates once."""

    refresher = cast(RateRefresher, current_app.extensions["rate_refresher"])
    try:
        if day is not None:
            summary = refresher.refresh_date(day.date())
            click.echo(
                f"{summary.day.isoformat()}: {summary.inserted} inserted, "
                f"{summary.updated} updated, {summary.unchanged} unchanged"
            )
        else:
            result = refresher.run_pass(utc_now().date())
            click.echo(
                f"Refreshed {len(result.dates)} dates: "
                f"{result.inserted} inserted, {result.updated} updated"
            )
    except PassError as exc:
        raise click.ClickException(str(exc)) from exc
