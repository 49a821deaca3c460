"""CLI commands for rendezvous.

Provides command-line interface using Typer:
- rendezvous enter: Register as a participant and wait for the barrier

Usage:
    rendezvous --help
    rendezvous enter --count 3 --value 12.5
"""

import typer

from rendezvous.cli.enter_cmd import app as enter_app

# Main CLI application
app = typer.Typer(
    name="rendezvous",
    help="rendezvous: distributed barrier over ZooKeeper",
    no_args_is_help=True,
)

app.add_typer(enter_app, name="enter")


@app.callback()
def callback() -> None:
    """rendezvous: distributed barrier over ZooKeeper."""
    pass


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
