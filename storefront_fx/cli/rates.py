"""CLI commands for refreshing, inspecting and seeding stored exchange rates."""

from __future__ import annotations

from collections import Counter

import click
from flask import current_app
from flask.cli import with_appcontext

from storefront_fx.services.exchange_rates import SEED_SOURCE, get_service


@click.command("refresh-rates")
@with_appcontext
def refresh_rates() -> None:
    """Fetch the configured basket from the provider and store it."""

    service = get_service(current_app)
    click.echo(
        f"Refreshing {service.base_currency} rates for {', '.join(service.basket)}..."
    )
    result = service.refresh(trigger="cli")
    for skipped in result.skipped:
        click.echo(f"Skipped {skipped.currency}: {skipped.reason}", err=True)
    if not result.success:
        raise click.ClickException(f"Refresh failed ({result.error_type}): {result.error}")
    click.echo(f"Stored {result.rates_written} rates as of {result.as_of.isoformat()}.")


@click.command("show-rates")
@with_appcontext
def show_rates() -> None:
    """Print every stored exchange rate and a summary by source."""

    service = get_service(current_app)
    records = service.repository.list_all()
    click.echo(f"Found {len(records)} exchange rates:")
    for record in records:
        click.echo(
            f"{record.from_currency} -> {record.to_currency}: {record.rate} "
            f"(source={record.source}, last_updated={record.last_updated.isoformat()})"
        )

    by_source = Counter(record.source for record in records)
    for source, count in sorted(by_source.items()):
        click.echo(f"  {source}: {count}")
    click.echo(f"Fresh: {'yes' if service.is_fresh() else 'no'}")


@click.command("seed-rates")
@with_appcontext
def seed_rates() -> None:
    """Store built-in reference rates so a new database can serve prices."""

    written = get_service(current_app).seed_initial_rates()
    click.echo(f"Seeded {written} exchange rates (source={SEED_SOURCE}).")
