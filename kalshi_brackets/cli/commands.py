"""Command-line interface for Kalshi Brackets."""

import math
from typing import Dict, Optional, Tuple

import click

from kalshi_brackets import __version__
from kalshi_brackets.config import DEFAULT_STATION, get_station, list_stations
from kalshi_brackets.core import StationData, WeightMode
from kalshi_brackets.data import (
    JsonFileStorage,
    JsonSnapshotStore,
    active_scheme,
    add_snapshot,
    add_source_row,
    attach_actual,
    clear_actual,
    create_snapshot,
    delete_snapshot,
    export_to_file,
    find_snapshot,
    get_station_data,
    import_from_file,
    remove_source_row,
    update_snapshot_scheme,
    update_source_row,
    with_station_data,
)
from kalshi_brackets.engine import (
    DEFAULT_MARKET_OPTIONS,
    CalculatorOptions,
    MarketOption,
    calculate_accuracy,
    calculate_accuracy_trend,
    calculate_auto_weights,
    calculate_market_metrics,
    calculate_source_stats,
    compute_distribution,
    format_scheme,
    parse_scheme_spec,
)
from kalshi_brackets.cli.display import Display
from kalshi_brackets.utils import setup_logging

STATION_HELP = f"Station code ({', '.join(list_stations())})"


@click.group()
@click.version_option(version=__version__)
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option(
    "--data-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Storage file (default: ~/.kalshi_brackets/storage.json)",
)
@click.pass_context
def main(ctx: click.Context, debug: bool, data_file: Optional[str]):
    """Kalshi Brackets - Weighted bracket probabilities for temperature markets."""
    setup_logging(level="DEBUG" if debug else "WARNING")
    ctx.obj = {
        "store": JsonSnapshotStore(JsonFileStorage(data_file)),
        "display": Display(),
    }


# =============================================================================
# HELPERS
# =============================================================================


def station_option(f):
    return click.option("--station", "-s", default=DEFAULT_STATION.code, help=STATION_HELP)(f)


def calculation_options(f):
    """Toggles shared by compute and save."""
    options = [
        click.option("--bias/--no-bias", default=False, help="Apply learned source bias"),
        click.option("--bias-window", default=0, type=int, help="Learn bias from the last N outcomes (0 = all)"),
        click.option(
            "--auto/--manual", "auto", default=None,
            help="Auto-weights from past accuracy, or manual weights (default: the station's mode)",
        ),
        click.option("--prior", "prior_id", default=None, help="Blend with this snapshot's distribution"),
    ]
    for option in reversed(options):
        f = option(f)
    return f


class Session:
    """The loaded workspace plus the station a command works on."""

    def __init__(self, ctx: click.Context, station: str):
        self.store: JsonSnapshotStore = ctx.obj["store"]
        self.display: Display = ctx.obj["display"]
        self.code = get_station(station).code
        self.workspace = self.store.load()

    @property
    def data(self) -> StationData:
        return get_station_data(self.workspace, self.code)

    def update(self, **changes) -> None:
        """Replace fields of the station's data and persist the workspace."""
        data = self.data
        updated = StationData(
            rows=changes.get("rows", data.rows),
            snapshots=changes.get("snapshots", data.snapshots),
            scheme=changes.get("scheme", data.scheme),
            weight_mode=changes.get("weight_mode", data.weight_mode),
        )
        self.workspace = with_station_data(self.workspace, self.code, updated)
        if not self.store.save(self.workspace):
            click.echo("Warning: could not write storage; changes were not saved", err=True)

    def use_auto_weights(self, auto: Optional[bool]) -> bool:
        """An explicit --auto/--manual wins over the station's stored mode."""
        if auto is not None:
            return auto
        return self.data.weight_mode != WeightMode.MANUAL


def open_session(ctx: click.Context, station: str) -> Optional[Session]:
    try:
        return Session(ctx, station)
    except KeyError as e:
        click.echo(f"Error: {e}", err=True)
        return None


def build_options(bias: bool, bias_window: int, auto: bool, prior_id: Optional[str]) -> CalculatorOptions:
    return CalculatorOptions(
        use_bias=bias,
        bias_window=max(0, bias_window),
        use_auto_weights=auto,
        use_prior=prior_id is not None,
        prior_id=prior_id,
    )


def parse_assignments(pairs: Tuple[str, ...], label: str) -> Dict[str, float]:
    """Parse repeated ID=NUMBER options."""
    result = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        try:
            value = float(raw)
        except ValueError:
            value = math.nan
        if not sep or not key.strip() or not math.isfinite(value):
            raise click.BadParameter(f"expected ID=NUMBER, got '{pair}'", param_hint=label)
        result[key.strip()] = value
    return result


# =============================================================================
# STATIONS AND SOURCES
# =============================================================================


@main.command()
@click.pass_context
def stations(ctx: click.Context):
    """List available stations."""
    workspace = ctx.obj["store"].load()
    click.echo("\nAvailable Stations:")
    click.echo("-" * 40)
    for code in list_stations():
        station = get_station(code)
        count = len(get_station_data(workspace, code).snapshots)
        click.echo(f"  {code:<5} - {station.name:<20} {count:>3} snapshots")


@main.command()
@station_option
@click.pass_context
def sources(ctx: click.Context, station: str):
    """Show the station's forecast sources."""
    session = open_session(ctx, station)
    if session is None:
        return
    session.display.show(session.display.generate_rows_table(session.data.rows, f"Sources - {session.code}"))


@main.command("source-add")
@station_option
@click.argument("name")
@click.argument("forecast", type=float)
@click.argument("weight", type=float, default=0.0)
@click.pass_context
def source_add(ctx: click.Context, station: str, name: str, forecast: float, weight: float):
    """Add a forecast source."""
    session = open_session(ctx, station)
    if session is None:
        return
    session.update(rows=add_source_row(session.data.rows, name, forecast, max(0.0, weight)))
    click.echo(f"Added {name} to {session.code}")


@main.command("source-set")
@station_option
@click.argument("row_id", type=int)
@click.option("--name", default=None, help="New source name")
@click.option("--forecast", default=None, type=float, help="New point forecast")
@click.option("--weight", default=None, type=float, help="New manual weight")
@click.pass_context
def source_set(ctx: click.Context, station: str, row_id: int, name: Optional[str],
               forecast: Optional[float], weight: Optional[float]):
    """Edit a forecast source."""
    session = open_session(ctx, station)
    if session is None:
        return
    if not any(r.id == row_id for r in session.data.rows):
        click.echo(f"Error: no source with id {row_id}", err=True)
        return

    changes = {}
    if name is not None:
        changes["source"] = name
    if forecast is not None:
        changes["forecast"] = forecast
    if weight is not None:
        changes["weight"] = max(0.0, weight)
    session.update(rows=update_source_row(session.data.rows, row_id, **changes))
    click.echo(f"Updated source {row_id}")


@main.command("source-remove")
@station_option
@click.argument("row_id", type=int)
@click.pass_context
def source_remove(ctx: click.Context, station: str, row_id: int):
    """Remove a forecast source (the last one is kept)."""
    session = open_session(ctx, station)
    if session is None:
        return
    rows = session.data.rows
    if len(rows) <= 1:
        click.echo("Error: cannot remove the last source", err=True)
        return
    session.update(rows=remove_source_row(rows, row_id))
    click.echo(f"Removed source {row_id}")


# =============================================================================
# SCHEME
# =============================================================================


@main.command()
@station_option
@click.pass_context
def scheme(ctx: click.Context, station: str):
    """Show the station's bracket scheme."""
    session = open_session(ctx, station)
    if session is None:
        return
    click.echo(format_scheme(active_scheme(session.data)))


@main.command("scheme-set")
@station_option
@click.argument("spec")
@click.option("--snapshot", "snapshot_id", default=None, help="Also store the scheme on this snapshot")
@click.pass_context
def scheme_set(ctx: click.Context, station: str, spec: str, snapshot_id: Optional[str]):
    """Set brackets, e.g. "≤91:91,92–93:93,94+:inf"."""
    session = open_session(ctx, station)
    if session is None:
        return
    try:
        new_scheme = parse_scheme_spec(spec)
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        return

    changes = {"scheme": new_scheme}
    if snapshot_id is not None:
        if find_snapshot(session.data.snapshots, snapshot_id) is None:
            click.echo(f"Error: no snapshot with id {snapshot_id}", err=True)
            return
        changes["snapshots"] = update_snapshot_scheme(session.data.snapshots, snapshot_id, new_scheme)
    session.update(**changes)
    click.echo(f"Scheme for {session.code}: {format_scheme(new_scheme)}")


# =============================================================================
# DISTRIBUTION AND SNAPSHOTS
# =============================================================================


@main.command()
@station_option
@calculation_options
@click.option("--details", is_flag=True, help="Show effective weights and bias per source")
@click.pass_context
def compute(ctx: click.Context, station: str, bias: bool, bias_window: int, auto: Optional[bool],
            prior_id: Optional[str], details: bool):
    """Compute the bracket distribution."""
    session = open_session(ctx, station)
    if session is None:
        return
    data = session.data
    dist = compute_distribution(
        data.rows, active_scheme(data), data.snapshots,
        build_options(bias, bias_window, session.use_auto_weights(auto), prior_id),
    )
    if prior_id is not None and not dist.prior_applied:
        click.echo(f"Note: snapshot {prior_id} not found or has a different scheme; prior ignored", err=True)
    session.display.show(session.display.generate_distribution_panel(dist, f"Distribution - {session.code}"))
    if details:
        session.display.show(session.display.generate_adjusted_rows_table(dist))


@main.command()
@station_option
@calculation_options
@click.option("--name", "-n", default=None, help="Snapshot name (default: M-D-YY (HH:MM))")
@click.pass_context
def save(ctx: click.Context, station: str, bias: bool, bias_window: int, auto: Optional[bool],
         prior_id: Optional[str], name: Optional[str]):
    """Compute the distribution and save it as a snapshot."""
    session = open_session(ctx, station)
    if session is None:
        return
    data = session.data
    options = build_options(bias, bias_window, session.use_auto_weights(auto), prior_id)
    dist = compute_distribution(data.rows, active_scheme(data), data.snapshots, options)

    snapshot = create_snapshot(name, dist.scheme, dist.probs, options.weight_mode, data.snapshots)
    session.update(snapshots=add_snapshot(data.snapshots, snapshot))
    click.echo(f"Saved snapshot {snapshot.id} ({snapshot.name})")


@main.command()
@station_option
@click.pass_context
def snapshots(ctx: click.Context, station: str):
    """List saved snapshots, newest first."""
    session = open_session(ctx, station)
    if session is None:
        return
    items = session.data.snapshots
    if not items:
        click.echo(f"No snapshots saved for {session.code}")
        return
    session.display.show(session.display.generate_snapshots_table(items, f"Snapshots - {session.code}"))


@main.command()
@station_option
@click.option("--value", "-v", "value", required=True, help="Realized outcome, e.g. 97 or -3")
@click.argument("snapshot_ids", nargs=-1, required=True)
@click.pass_context
def attach(ctx: click.Context, station: str, value: str, snapshot_ids: Tuple[str, ...]):
    """Attach the realized outcome --value to snapshots."""
    session = open_session(ctx, station)
    if session is None:
        return
    try:
        actual = float(value)
    except ValueError:
        actual = math.nan
    if not math.isfinite(actual):
        click.echo(f"Error: '{value}' is not a number", err=True)
        return

    known = {s.id for s in session.data.snapshots}
    missing = [i for i in snapshot_ids if i not in known]
    if missing:
        click.echo(f"Warning: unknown snapshot ids: {', '.join(missing)}", err=True)
    session.update(snapshots=attach_actual(session.data.snapshots, snapshot_ids, actual))
    click.echo(f"Attached {actual:g} to {len(snapshot_ids) - len(missing)} snapshots")


@main.command()
@station_option
@click.argument("snapshot_ids", nargs=-1, required=True)
@click.pass_context
def clear(ctx: click.Context, station: str, snapshot_ids: Tuple[str, ...]):
    """Remove the realized outcome from snapshots."""
    session = open_session(ctx, station)
    if session is None:
        return
    session.update(snapshots=clear_actual(session.data.snapshots, snapshot_ids))
    click.echo(f"Cleared outcome on {len(snapshot_ids)} snapshots")


@main.command()
@station_option
@click.argument("snapshot_id")
@click.pass_context
def delete(ctx: click.Context, station: str, snapshot_id: str):
    """Delete a snapshot."""
    session = open_session(ctx, station)
    if session is None:
        return
    if find_snapshot(session.data.snapshots, snapshot_id) is None:
        click.echo(f"Error: no snapshot with id {snapshot_id}", err=True)
        return
    session.update(snapshots=delete_snapshot(session.data.snapshots, snapshot_id))
    click.echo(f"Deleted snapshot {snapshot_id}")


@main.command()
@station_option
@click.argument("snapshot_id")
@click.pass_context
def load(ctx: click.Context, station: str, snapshot_id: str):
    """Show a saved snapshot and make its scheme and weight mode the working ones."""
    session = open_session(ctx, station)
    if session is None:
        return
    snapshot = find_snapshot(session.data.snapshots, snapshot_id)
    if snapshot is None:
        click.echo(f"Error: no snapshot with id {snapshot_id}", err=True)
        return

    session.update(scheme=list(snapshot.scheme), weight_mode=snapshot.weight_mode)
    click.echo(f"{snapshot.name} [{snapshot.weight_mode.value} weights]")
    click.echo(format_scheme(snapshot.scheme))
    for bracket, p in zip(snapshot.scheme, snapshot.probs):
        click.echo(f"  {bracket.label:<10} {p * 100:>6.1f}%")
    if snapshot.has_actual:
        click.echo(f"Actual: {snapshot.actual:g}")


# =============================================================================
# CALIBRATION
# =============================================================================


@main.command()
@station_option
@click.pass_context
def stats(ctx: click.Context, station: str):
    """Show per-source accuracy and auto-weights."""
    session = open_session(ctx, station)
    if session is None:
        return
    data = session.data
    source_stats = calculate_source_stats(data.snapshots, data.rows)
    if not source_stats:
        click.echo("No outcomes attached yet; nothing to score")
        return
    session.display.show(
        session.display.generate_stats_table(source_stats, calculate_auto_weights(source_stats))
    )


@main.command()
@station_option
@click.pass_context
def accuracy(ctx: click.Context, station: str):
    """Show top-bracket accuracy and its trend."""
    session = open_session(ctx, station)
    if session is None:
        return
    items = session.data.snapshots
    session.display.show(
        session.display.generate_accuracy_panel(calculate_accuracy(items), calculate_accuracy_trend(items))
    )


# =============================================================================
# BACKUP
# =============================================================================


@main.command()
@click.option("--dir", "directory", default=".", type=click.Path(file_okay=False), help="Output directory")
@click.pass_context
def export(ctx: click.Context, directory: str):
    """Export every station to a backup file."""
    path = export_to_file(ctx.obj["store"].load(), directory)
    if path is None:
        click.echo("Error: could not write backup file", err=True)
        return
    click.echo(f"Exported to {path}")


@main.command("import")
@click.argument("path", type=click.Path(dir_okay=False))
@click.pass_context
def import_(ctx: click.Context, path: str):
    """Replace all stations with a backup file."""
    result = import_from_file(path, ctx.obj["store"])
    click.echo(result.message, err=not result.ok)


# =============================================================================
# HEDGE
# =============================================================================


@main.command()
@click.option("--deposit", "-d", "deposits", multiple=True, help="Dollars per market as ID=AMOUNT")
@click.option("--price", "-p", "prices", multiple=True, help="Override a YES price as ID=PRICE")
@click.pass_context
def hedge(ctx: click.Context, deposits: Tuple[str, ...], prices: Tuple[str, ...]):
    """Contracts and payouts for deposits spread across markets."""
    deposit_map = parse_assignments(deposits, "--deposit")
    price_map = parse_assignments(prices, "--price")

    known = {o.id for o in DEFAULT_MARKET_OPTIONS}
    unknown = sorted((set(deposit_map) | set(price_map)) - known)
    if unknown:
        click.echo(f"Error: unknown markets {', '.join(unknown)} (known: {', '.join(sorted(known))})", err=True)
        return

    options = [
        MarketOption(id=o.id, range=o.range, yes_price=price_map.get(o.id, o.yes_price))
        for o in DEFAULT_MARKET_OPTIONS
    ]
    metrics = calculate_market_metrics(options, deposit_map)
    ctx.obj["display"].show(ctx.obj["display"].generate_hedge_table(metrics))
    click.echo(f"Total invested: ${sum(deposit_map.values()):.2f}")


if __name__ == "__main__":
    main()
