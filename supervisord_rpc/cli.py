"""Command line front end, a small subset of ``supervisorctl``."""

from contextlib import contextmanager
from typing import List, Optional

import typer

from supervisord_rpc.client import SupervisorClient
from supervisord_rpc.errors import ExplicitRejection, SupervisorError
from supervisord_rpc.models import ProcessInfo, ProcessState, ProcessStatus
from supervisord_rpc.process_control import signal_argument
from supervisord_rpc.utils import config
from supervisord_rpc.utils.logger import get_logger, setup_logging
from supervisord_rpc.utils.validate_config import validate_config

logger = get_logger(__name__)

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Control a supervisord instance over XML-RPC.",
)


@contextmanager
def _handle_errors(action: str):
    try:
        yield
    except ExplicitRejection as e:
        typer.echo(f"ERROR ({action}): supervisord refused: {e}", err=True)
        raise typer.Exit(1)
    except SupervisorError as e:
        typer.echo(f"ERROR ({action}): {e}", err=True)
        raise typer.Exit(1)


def _client(ctx: typer.Context) -> SupervisorClient:
    return ctx.obj["client"]


def _format_uptime(seconds: int) -> str:
    hours, remainder = divmod(seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours}:{minutes:02d}:{seconds:02d}"


def _describe(info: ProcessInfo) -> str:
    if info.description:
        return info.description
    if info.state == ProcessState.RUNNING:
        return f"pid {info.pid}, uptime {_format_uptime(info.uptime)}"
    return info.spawnerr


def _echo_statuses(statuses: List[ProcessStatus], verb: str) -> bool:
    ok = True
    for status in statuses:
        if status.ok:
            typer.echo(f"{status.full_name}: {verb}")
        else:
            ok = False
            typer.echo(f"{status.full_name}: ERROR ({status.description})", err=True)
    return ok


def _group_name(name: str) -> Optional[str]:
    if name.endswith(":*"):
        return name[:-2]
    return None


@app.callback()
def main(
    ctx: typer.Context,
    url: Optional[str] = typer.Option(None, "--url", help="RPC URL, e.g. http://127.0.0.1:9001/RPC2"),
    socket_path: Optional[str] = typer.Option(None, "--socket", help="Path to supervisord's Unix socket"),
    username: Optional[str] = typer.Option(None, "--username", "-u"),
    password: Optional[str] = typer.Option(None, "--password", "-p"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Seconds allowed per call"),
    debug: bool = typer.Option(False, "--debug", help="Log request and reply bodies"),
    sanitize: bool = typer.Option(False, "--sanitize", help="Replace characters XML cannot carry in replies"),
):
    setup_logging("DEBUG" if debug else None)

    endpoint = socket_path or url
    try:
        validate_config(check_endpoint=endpoint is None)
    except ValueError as e:
        typer.echo(f"Stopping due to invalid configuration.\n{e}", err=True)
        raise typer.Exit(1)

    logger.debug(f"Using endpoint {endpoint or config.SUPERVISOR_SOCKET or config.SUPERVISOR_URL}")
    try:
        client = SupervisorClient.from_env(
            endpoint=endpoint,
            username=username,
            password=password,
            timeout=timeout,
            debug=debug or None,
            sanitize=sanitize or None,
        )
    except ValueError as e:
        typer.echo(f"ERROR: {e}", err=True)
        raise typer.Exit(1)
    ctx.obj = {"client": client}
    ctx.call_on_close(client.close)


@app.command()
def status(ctx: typer.Context, names: Optional[List[str]] = typer.Argument(None)):
    """Show the state of all processes, or of the named ones."""
    client = _client(ctx)
    with _handle_errors("status"):
        if names:
            infos = [client.get_process_info(name) for name in names]
        else:
            infos = client.get_all_process_info()

    for info in infos:
        typer.echo(f"{info.full_name:<32} {info.statename:<10} {_describe(info)}")


@app.command()
def start(ctx: typer.Context, name: str, no_wait: bool = typer.Option(False, "--no-wait")):
    """Start a process, a group (``group:*``) or ``all``."""
    client = _client(ctx)
    wait = not no_wait
    with _handle_errors("start"):
        if name == "all":
            ok = _echo_statuses(client.start_all_processes(wait), "started")
        elif _group_name(name):
            ok = _echo_statuses(client.start_process_group(_group_name(name), wait), "started")
        else:
            client.start_process(name, wait)
            typer.echo(f"{name}: started")
            ok = True
    if not ok:
        raise typer.Exit(1)


@app.command()
def stop(ctx: typer.Context, name: str, no_wait: bool = typer.Option(False, "--no-wait")):
    """Stop a process, a group (``group:*``) or ``all``."""
    client = _client(ctx)
    wait = not no_wait
    with _handle_errors("stop"):
        if name == "all":
            ok = _echo_statuses(client.stop_all_processes(wait), "stopped")
        elif _group_name(name):
            ok = _echo_statuses(client.stop_process_group(_group_name(name), wait), "stopped")
        else:
            client.stop_process(name, wait)
            typer.echo(f"{name}: stopped")
            ok = True
    if not ok:
        raise typer.Exit(1)


@app.command()
def restart(ctx: typer.Context, name: str):
    """Stop then start a process, a group (``group:*``) or ``all``."""
    stop(ctx, name, no_wait=False)
    start(ctx, name, no_wait=False)


@app.command("signal")
def signal_command(ctx: typer.Context, sig: str, name: str):
    """Send a signal (name or number) to a process, a group or ``all``."""
    client = _client(ctx)
    sig_arg = int(sig) if sig.isdigit() else signal_argument(sig)
    with _handle_errors("signal"):
        if name == "all":
            ok = _echo_statuses(client.signal_all_processes(sig_arg), "signalled")
        elif _group_name(name):
            ok = _echo_statuses(client.signal_process_group(_group_name(name), sig_arg), "signalled")
        else:
            client.signal_process(name, sig_arg)
            typer.echo(f"{name}: signalled")
            ok = True
    if not ok:
        raise typer.Exit(1)


@app.command()
def reread(ctx: typer.Context):
    """Re-read the configuration without applying it."""
    with _handle_errors("reread"):
        added, changed, removed = _client(ctx).reload_config()

    if not (added or changed or removed):
        typer.echo("No config updates to processes")
    for name in added:
        typer.echo(f"{name}: available")
    for name in changed:
        typer.echo(f"{name}: changed")
    for name in removed:
        typer.echo(f"{name}: disappeared")


@app.command()
def update(ctx: typer.Context):
    """Re-read the configuration and restart what changed."""
    with _handle_errors("update"):
        added, changed, removed = _client(ctx).update()

    for name in removed:
        typer.echo(f"{name}: stopped")
        typer.echo(f"{name}: removed process group")
    for name in changed:
        typer.echo(f"{name}: stopped")
        typer.echo(f"{name}: updated process group")
    for name in added:
        typer.echo(f"{name}: added process group")


@app.command()
def add(ctx: typer.Context, name: str):
    """Activate a process group that was added to the configuration."""
    with _handle_errors("add"):
        _client(ctx).add_process_group(name)
    typer.echo(f"{name}: added process group")


@app.command()
def remove(ctx: typer.Context, name: str):
    """Remove a stopped process group from the active configuration."""
    with _handle_errors("remove"):
        _client(ctx).remove_process_group(name)
    typer.echo(f"{name}: removed process group")


@app.command()
def clear(ctx: typer.Context, name: str):
    """Clear the logs of a process, or of ``all`` processes."""
    client = _client(ctx)
    with _handle_errors("clear"):
        if name == "all":
            ok = _echo_statuses(client.clear_all_process_logs(), "cleared")
        else:
            client.clear_process_logs(name)
            typer.echo(f"{name}: cleared")
            ok = True
    if not ok:
        raise typer.Exit(1)


@app.command()
def log(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help="Process name; omit for supervisord's main log"),
    stderr: bool = typer.Option(False, "--stderr"),
    offset: Optional[int] = typer.Option(None, "--offset", help="Start offset; default reads the tail"),
    length: int = typer.Option(1600, "--length"),
):
    """Print part of a process log or of the main log."""
    client = _client(ctx)
    if offset is None:
        offset, length = -length, 0

    with _handle_errors("log"):
        if name is None:
            text = client.read_log(offset, length)
        elif stderr:
            text = client.read_process_stderr_log(name, offset, length)
        else:
            text = client.read_process_stdout_log(name, offset, length)
    typer.echo(text, nl=False)


@app.command()
def pid(ctx: typer.Context):
    """Print the PID of supervisord."""
    with _handle_errors("pid"):
        typer.echo(_client(ctx).get_pid())


@app.command()
def version(ctx: typer.Context):
    """Print supervisord's version, API version and state."""
    client = _client(ctx)
    with _handle_errors("version"):
        supervisor_version = client.get_supervisor_version()
        api_version = client.get_api_version()
        state = client.get_state()
    typer.echo(f"supervisord {supervisor_version} (API {api_version}), state {state.name}")


@app.command()
def shutdown(ctx: typer.Context):
    """Shut supervisord down."""
    with _handle_errors("shutdown"):
        _client(ctx).shutdown()
    typer.echo("Shut down")


def run():
    app()


if __name__ == "__main__":
    run()
