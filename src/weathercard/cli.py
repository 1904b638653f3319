import asyncio

import typer
from rich.console import Console

from weathercard.card import ErrorKind, RecordContext, RecordType, WeatherCard
from weathercard.logging_conf import setup_logging
from weathercard.settings import get_settings

app = typer.Typer()

console = Console()

RECORD_TYPES = ", ".join(record_type.value for record_type in RecordType)


@app.callback()
def main_callback(
    ctx: typer.Context,
    log_level: str = typer.Option(None, help="Override WEATHERCARD_LOG_LEVEL."),
):
    """Look up current weather for a typed city or a linked record."""
    level = log_level or get_settings().log_level
    ctx.obj = {"log_level": level}
    setup_logging(level)


@app.command()
def card(
    ctx: typer.Context,
    record_id: str = typer.Option(None, help="Record to infer the city from."),
    record_type: str = typer.Option(None, help=f"Record type ({RECORD_TYPES})."),
):
    """Open the interactive weather card."""
    from weathercard.services.config import ConfigError, ConfigMissingError, load_config
    from weathercard.tui.app import main as run_tui

    record: RecordContext | None = None
    if record_id or record_type:
        record = RecordContext(record_id=record_id, record_type=record_type)
    else:
        try:
            linked = load_config().linked_record
        except ConfigMissingError:
            linked = None
        except ConfigError as exc:
            console.print(f"[red]{exc}[/red]")
            return
        if linked:
            record = RecordContext(record_id=linked.record_id, record_type=linked.record_type)

    if record is not None and not record.supports_inference:
        console.print(
            f"[yellow]Record type {record.record_type!r} has no city field; "
            "the city will not be inferred.[/yellow]"
        )

    level = (ctx.obj or {}).get("log_level") or get_settings().log_level
    setup_logging(level, tui=True)
    run_tui(record)


@app.command()
def weather(city: str = typer.Argument("", help="City name.")):
    """Look up current weather for CITY once."""
    from weathercard.services.weather import WeatherService, format_weather

    service = WeatherService()
    weather_card = WeatherCard(service.alookup)
    weather_card.handle_city_change(city)
    asyncio.run(weather_card.search())

    view = weather_card.view()
    if view.error:
        color = "yellow" if view.error_kind is ErrorKind.VALIDATION else "red"
        console.print(f"[{color}]{view.error}[/{color}]")
        raise typer.Exit(code=1)
    if view.weather is not None:
        console.print(format_weather(view.weather, view.description or ""))


@app.command()
def link(
    record_id: str = typer.Argument(..., help="Record id."),
    record_type: str = typer.Argument(..., help=f"Record type ({RECORD_TYPES})."),
):
    """Link the card to a record so its city is inferred."""
    from weathercard.services.config import ConfigError, update_config

    if RecordContext(record_id=record_id, record_type=record_type).city_field is None:
        console.print(f"[red]Unsupported record type {record_type!r}. Use {RECORD_TYPES}.[/red]")
        raise typer.Exit(code=1)

    try:
        update_config({"linked_record": {"record_id": record_id, "record_type": record_type}})
    except ConfigError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    console.print(f"[green]Linked to {record_type} {record_id}.[/green]")


@app.command()
def unlink():
    """Remove the linked record."""
    from weathercard.services.config import (
        AppConfig,
        ConfigError,
        ConfigMissingError,
        load_config,
        write_config,
    )

    try:
        config = load_config()
    except ConfigMissingError:
        console.print("No record is linked.")
        return
    except ConfigError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    if not config.linked_record:
        console.print("No record is linked.")
        return

    write_config(AppConfig(linked_record=None))
    console.print("[green]Record unlinked.[/green]")


@app.command("link-status")
def link_status():
    """Show the linked record and its city."""
    from weathercard.services.config import ConfigError, ConfigMissingError, load_config
    from weathercard.services.records import RecordStore, RecordStoreError

    try:
        linked = load_config().linked_record
    except ConfigMissingError:
        linked = None
    except ConfigError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    if not linked:
        console.print("No record is linked.")
        return

    console.print(f"Linked record: {linked.record_type} {linked.record_id}")
    field = RecordContext(record_id=linked.record_id, record_type=linked.record_type).city_field
    if field is None:
        console.print("[yellow]Unsupported record type; no city field.[/yellow]")
        return
    try:
        record = RecordStore().get(linked.record_id)
    except RecordStoreError as exc:
        console.print(f"[yellow]{exc}[/yellow]")
        return
    console.print(f"{field}: {record.fields.get(field) or 'Not set'}")


@app.command("record-set")
def record_set(
    record_id: str = typer.Argument(..., help="Record id."),
    record_type: str = typer.Option(..., "--type", help=f"Record type ({RECORD_TYPES})."),
    city: str = typer.Option(None, help="City to store in the record's city field."),
):
    """Create or update a record in the local record store."""
    from weathercard.services.records import RecordStore, RecordStoreError

    field = RecordContext(record_id=record_id, record_type=record_type).city_field
    if field is None:
        console.print(f"[red]Unsupported record type {record_type!r}. Use {RECORD_TYPES}.[/red]")
        raise typer.Exit(code=1)

    store = RecordStore()
    try:
        existing = dict(store.get(record_id).fields)
    except RecordStoreError:
        existing = {}
    if city:
        existing[field] = city
    else:
        existing.pop(field, None)

    try:
        store.put(record_id, record_type, existing)
    except RecordStoreError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    console.print(f"[green]Saved {record_type} {record_id}.[/green]")


@app.command("record-show")
def record_show(record_id: str = typer.Argument(..., help="Record id.")):
    """Print a stored record."""
    from weathercard.services.records import RecordStore, RecordStoreError

    try:
        record = RecordStore().get(record_id)
    except RecordStoreError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc

    console.print(f"{record_id} ({record.type})")
    if not record.fields:
        console.print("[dim]No fields set.[/dim]")
    for name, value in record.fields.items():
        console.print(f"  {name}: {value or 'Not set'}")


def main():
    app()


if __name__ == "__main__":
    main()
