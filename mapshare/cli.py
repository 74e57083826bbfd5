"""
mapshare CLI - Typer entry point

Commands: status, serve, smoke, state save/get/list/rm
"""

import asyncio
import json
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, Optional

import httpx
import typer

from mapshare._core import MapShare, get_store
from mapshare.client import MapShareClient
from mapshare.errors import ConfigError, MapShareError, RecordNotFound
from mapshare.health_checks import check_store, check_store_config

app = typer.Typer(help="mapshare storage backend")
state_app = typer.Typer(help="Saved map states")
app.add_typer(state_app, name="state")


def _run(action: Callable[[MapShare], Awaitable[Any]]) -> Any:
    """Run ``action`` against a fresh MapShare and close its store afterwards."""

    async def _main():
        ms = MapShare(get_store())
        try:
            return await action(ms)
        finally:
            await ms.close()

    try:
        return asyncio.run(_main())
    except ConfigError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        sys.exit(2)


def _echo_json(data: Any) -> None:
    typer.echo(json.dumps(data, ensure_ascii=False, indent=2))


@app.command()
def status() -> None:
    """Check store configuration and connectivity."""
    config_ok = check_store_config()
    typer.echo("config: ok" if config_ok else "config: fail")
    if not config_ok:
        typer.echo("store: skipped")
        return
    store_ok = _run(lambda ms: check_store(ms.store))
    typer.echo("store: ok" if store_ok else "store: fail")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host"),
    port: Optional[int] = typer.Option(None, "--port", "-p"),
    reload: bool = typer.Option(False, "--reload"),
) -> None:
    """Run the HTTP API with uvicorn."""
    from mapshare.http_server import run

    run(host=host, port=port, reload=reload)


@app.command()
def smoke(base_url: str) -> None:
    """POST a state to a deployed API and read it back."""
    state = {"hello": "world", "zoom": 15, "models": []}
    try:
        with MapShareClient(base_url) as client:
            state_id = client.save_state(state)
            typer.echo(f"saved: {state_id}")
            fetched = client.get_state(state_id)
            client.delete_state(state_id)
    except httpx.HTTPError as e:
        typer.echo(f"smoke test failed: {e}", err=True)
        sys.exit(1)
    if fetched != state:
        typer.echo(f"smoke test failed: read back {fetched!r}", err=True)
        sys.exit(1)
    typer.echo("ok")


@state_app.command("save")
def state_save(
    source: str = typer.Argument(..., help="JSON file, or - for stdin"),
    owner: Optional[str] = typer.Option(None, "--owner", "-o"),
    name: Optional[str] = typer.Option(None, "--name", "-n"),
) -> None:
    """Save a JSON state and print its id."""
    text = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    try:
        payload = json.loads(text)
    except ValueError as e:
        typer.echo(f"Invalid JSON: {e}", err=True)
        sys.exit(1)
    try:
        state_id = _run(lambda ms: ms.states.save(owner, payload, name=name))
    except MapShareError as e:
        typer.echo(f"Error: {e}", err=True)
        sys.exit(1)
    typer.echo(state_id)


@state_app.command("get")
def state_get(
    state_id: str,
    owner: Optional[str] = typer.Option(None, "--owner", "-o"),
) -> None:
    """Print a saved state."""
    try:
        payload = _run(lambda ms: ms.states.fetch(owner, state_id))
    except RecordNotFound:
        typer.echo(f"Not found: {state_id}", err=True)
        sys.exit(1)
    _echo_json(payload)


@state_app.command("list")
def state_list(owner: Optional[str] = typer.Option(None, "--owner", "-o")) -> None:
    """List saved states, newest first."""
    records = _run(lambda ms: ms.states.list(owner))
    _echo_json([r.summary() for r in records])


@state_app.command("rm")
def state_rm(
    state_id: str,
    owner: Optional[str] = typer.Option(None, "--owner", "-o"),
) -> None:
    """Delete a saved state."""
    if not _run(lambda ms: ms.states.remove(owner, state_id)):
        typer.echo(f"Not found: {state_id}", err=True)
        sys.exit(1)
    typer.echo(f"deleted: {state_id}")


if __name__ == "__main__":
    app()
