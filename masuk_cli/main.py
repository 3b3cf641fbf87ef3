from __future__ import annotations

import sys

import click
import typer
from dotenv import find_dotenv, load_dotenv
from rich.console import Console
from rich.markup import escape

from . import __version__
from .cli_shared import MasukError, _print_json, default_config_path
from .launcher import exec_ssh
from .store import ProfileStore

PROG_NAME = "masuk"

_COMMAND_TOKENS = {"add", "list", "ls", "remove", "rm", "--version"}
_HELP_TOKENS = {"help", "-h", "--help"}

_ERROR_CONSOLE = Console(stderr=True, soft_wrap=True)


app = typer.Typer(
    name=PROG_NAME,
    help=(
        "SSH host and port manager.\n\n"
        "Save connection details under a memorable name, then connect with "
        "'masuk <profile>'."
    ),
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _rich_error(msg: str) -> None:
    _ERROR_CONSOLE.print(f"[bold red]error:[/bold red] {escape(msg)}")


def _bootstrap_env() -> None:
    # Values already exported in the environment win over .env entries.
    path = find_dotenv(usecwd=True)
    if path:
        load_dotenv(path)


def _store() -> ProfileStore:
    return ProfileStore(default_config_path())


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"{PROG_NAME} {__version__}")
        raise typer.Exit(code=0)


@app.callback()
def app_callback(
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True),
) -> None:
    del version


@app.command(
    "add",
    help=(
        "Add a profile with host and optional user/port/key. "
        "Example: 'masuk add foobar -h 192.168.1.81 -u root -p 2222 -k ~/.ssh/id_rsa'"
    ),
    context_settings={"help_option_names": ["--help"]},
)
def add(
    name: str = typer.Argument(..., help="Profile name"),
    host: str = typer.Option(..., "--host", "-h", help="Host name or IP address"),
    user: str | None = typer.Option(None, "--user", "-u", help="SSH user"),
    port: int | None = typer.Option(
        None, "--port", "-p", min=1, max=65535, help="SSH port (omit to use the client default)"
    ),
    key: str | None = typer.Option(None, "--key", "-k", help="Path to an identity file"),
) -> None:
    profile = _store().add(name, host, user=user, port=port, key=key)
    typer.echo(f"✓ Added profile '{name}' → {profile.display()}")


@app.command("list", help="List all configured profiles.")
def list_profiles(
    json_output: bool = typer.Option(False, "--json", help="Emit profiles as JSON"),
    plain_json: bool = typer.Option(False, "--plain-json", help="Emit compact JSON output"),
) -> None:
    store = _store()
    if json_output or plain_json:
        doc = store.load()
        profiles = []
        for name in sorted(doc.profiles):
            p = doc.profiles[name]
            profiles.append({"name": name, **p.to_dict(), "target": p.target, "sshArgs": p.ssh_args()})
        _print_json(
            {
                "kind": "masuk.profiles.v1",
                "configPath": str(store.path),
                "updatedAt": doc.updated_at,
                "profiles": profiles,
            },
            pretty=not plain_json,
        )
        return

    items = store.list()
    if not items:
        typer.echo(f"No profiles configured yet. Use '{PROG_NAME} add <profile> -h <host>' to add one.")
        return
    typer.echo("")
    typer.echo("Configured profiles:")
    typer.echo("")
    for name, profile in items:
        typer.echo(f"  {name} → {profile.display()}")
    typer.echo("")


app.command("ls", hidden=True, help="Alias for 'list'.")(list_profiles)


@app.command("remove", help="Remove a profile. Example: 'masuk remove foobar'")
def remove(name: str = typer.Argument(..., help="Profile name")) -> None:
    _store().remove(name)
    typer.echo(f"✓ Removed profile '{name}'")


app.command("rm", hidden=True, help="Alias for 'remove'.")(remove)


@app.command("connect", hidden=True, help="Connect to a saved profile.")
def connect(name: str = typer.Argument(..., help="Profile name")) -> None:
    profile = _store().get(name)
    typer.echo(f"Connecting to {name} ({profile.display()})...")
    raise typer.Exit(code=exec_ssh(profile.ssh_args()))


def route(argv: list[str]) -> list[str]:
    """Map raw arguments onto the Typer command tree.

    Anything that is not a known command is a profile name to connect to.
    """
    if not argv or argv[0] in _HELP_TOKENS:
        return ["--help"]
    if argv[0] in _COMMAND_TOKENS:
        return list(argv)
    return ["connect", "--", *argv]


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    try:
        _bootstrap_env()
        result = app(args=route(argv), prog_name=PROG_NAME, standalone_mode=False)
        if result is None:
            return 0
        return int(result)
    except typer.Exit as e:
        return int(e.exit_code)
    except click.exceptions.Abort:
        return 130
    except click.ClickException as e:
        _rich_error(e.format_message())
        return 1
    except MasukError as e:
        _rich_error(str(e))
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
