"""CLI command for entering a barrier.

Usage:
    rendezvous enter --count 3
    rendezvous enter --zk zk1:2181,zk2:2181 --path /jobs/build-42 --count 5 --value 12.5
    rendezvous enter --backend memory --count 1 --exit-delay 0
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import typer

from rendezvous.config import settings

if TYPE_CHECKING:
    from rich.console import Console

    from rendezvous.barrier import BarrierRunner

app = typer.Typer(help="Register as a participant and wait for the barrier to pass")


@app.callback(invoke_without_command=True)
def enter(
    zk: str = typer.Option(
        None,
        "--zk",
        "--zookeeper",
        help=f"ZooKeeper connection string [default: {settings.zk_hosts}]",
    ),
    path: str = typer.Option(
        None,
        "--path",
        "--barrier-path",
        help=f"Barrier root path [default: {settings.barrier_path}]",
    ),
    count: int = typer.Option(
        None,
        "--count",
        "--participant-count",
        min=1,
        help=f"Number of participants to wait for [default: {settings.participant_count}]",
    ),
    value: float = typer.Option(
        None,
        "--value",
        "--participant-value",
        help="Numeric value this participant contributes",
    ),
    exit_delay: float = typer.Option(
        None,
        "--exit-delay",
        min=0,
        help=f"Seconds to wait after passing before exiting [default: {settings.exit_delay}]",
    ),
    backend: str = typer.Option(
        None,
        "--backend",
        "-b",
        help=f"Coordination backend: zookeeper, memory [default: {settings.coordination_backend}]",
    ),
    log_level: str = typer.Option(
        settings.log_level,
        "--log-level",
        "-l",
        help="Log level: debug, info, warning, error",
    ),
    json_logs: bool = typer.Option(
        settings.log_json,
        "--json-logs/--console-logs",
        help="Emit JSON formatted logs",
    ),
) -> None:
    """Enter the barrier and exit once it has passed.

    Exits 0 when the barrier passes or on SIGINT/SIGTERM, 1 on a
    coordination failure.
    """
    from rich.console import Console

    from rendezvous.barrier import BarrierConfig, BarrierRunner
    from rendezvous.coordination import create_coordination_client
    from rendezvous.observability import configure_logging

    configure_logging(json_format=json_logs, level=log_level)

    try:
        config = BarrierConfig.from_settings(
            barrier_path=path,
            participant_count=count,
            participant_value=value,
            exit_delay=exit_delay,
        )
        client = create_coordination_client(backend=backend, hosts=zk)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    typer.echo("Entering barrier...")
    typer.echo(f"  Backend: {backend or settings.coordination_backend}")
    typer.echo(f"  ZooKeeper: {zk or settings.zk_hosts}")
    typer.echo(f"  Path: {config.barrier_path}")
    typer.echo(f"  Participants: {config.participant_count}")
    if config.participant_value is not None:
        typer.echo(f"  Value: {config.participant_value}")
    typer.echo()

    runner = BarrierRunner(client, config)
    exit_code = asyncio.run(runner.run())

    _print_summary(runner, Console())
    raise typer.Exit(code=exit_code)


def _print_summary(runner: BarrierRunner, console: Console) -> None:
    """Print the outcome of a barrier run."""
    result = runner.result
    console.print()
    if runner.error is not None:
        console.print(f"[red]Barrier failed:[/red] {runner.error}")
        return
    if result is None:
        console.print("[yellow]Interrupted before the barrier passed[/yellow]")
        return

    console.print("[bold]Summary:[/bold]")
    console.print(f"  [green]Passed:[/green] {result.participants} participant(s)")
    console.print(f"  [blue]Node:[/blue]   {result.node_name}")
    console.print(f"  [blue]Time:[/blue]   {result.elapsed_seconds:.1f}s")
    if result.is_leader and result.stats is not None:
        stats = result.stats
        console.print(
            f"  [blue]Stats:[/blue]  max={stats.maximum} min={stats.minimum} "
            f"mean={stats.mean} ({stats.count} value(s))"
        )
