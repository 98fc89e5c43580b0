from __future__ import annotations

import json
import signal
import sys
from typing import List, Optional

import typer
from loguru import logger

from mongotail import (
    ConnectionManager,
    Decorator,
    StreamSink,
    Tailer,
    TailError,
    TailerOptions,
    resolve_targets,
)
from tailctl.config import get_settings

app = typer.Typer(help="Tail MongoDB capped collections as NDJSON events")

# ---------------------------
# Common options
# ---------------------------


def server_opt() -> Optional[str]:
    return typer.Option(None, "--server", help="MongoDB connection string (env: MONGOTAIL_SERVER)")


def collections_opt() -> Optional[List[str]]:
    return typer.Option(
        None,
        "--collection",
        "-c",
        help="Collection to tail as [database/]collection; repeatable (env: MONGOTAIL_COLLECTIONS)",
    )


def _options(
    server: Optional[str],
    collections: Optional[List[str]],
    interval: Optional[float] = None,
    on_missing: Optional[str] = None,
    on_server_unavailable: Optional[str] = None,
) -> TailerOptions:
    settings = get_settings()
    base = settings.tailer_options()
    return TailerOptions(
        collections=collections or base.collections,
        server=server or base.server,
        interval=interval if interval is not None else base.interval,
        on_missing=on_missing or base.on_missing,
        on_server_unavailable=on_server_unavailable or base.on_server_unavailable,
        server_selection_timeout_ms=base.server_selection_timeout_ms,
    )


# ---------------------------
# Commands
# ---------------------------


@app.command("tail")
def tail(
    server: Optional[str] = server_opt(),
    collections: Optional[List[str]] = collections_opt(),
    interval: Optional[float] = typer.Option(
        None, "--interval", min=0.001, help="Poll sleep and backoff base (s)"
    ),
    on_missing: Optional[str] = typer.Option(None, "--on-missing", help="raise | retry | ignore"),
    on_server_unavailable: Optional[str] = typer.Option(
        None, "--on-server-unavailable", help="raise | retry"
    ),
    metrics_port: Optional[int] = typer.Option(
        None, "--metrics-port", help="Expose Prometheus metrics"
    ),
):
    """Tail collections until interrupted; one JSON event per line on stdout."""
    settings = get_settings()
    try:
        opts = _options(server, collections, interval, on_missing, on_server_unavailable)
    except TailError as e:
        logger.error(f"Invalid options: {e}")
        sys.exit(2)
    decorator = Decorator(
        type=settings.TYPE, tags=tuple(settings.TAGS), add_field=settings.ADD_FIELD
    )

    port = metrics_port if metrics_port is not None else settings.METRICS_PORT
    if port:
        from prometheus_client import start_http_server

        start_http_server(port)
        logger.info(f"Metrics exposed on :{port}")

    tailer = Tailer(opts, StreamSink(sys.stdout), decorator=decorator)
    try:
        tailer.register()
    except (TailError, ValueError) as e:
        logger.error(f"Failed to start tailer: {e}")
        tailer.close()
        sys.exit(2)

    def _stop(signum, _frame):
        logger.info(f"Received signal {signum}, stopping")
        tailer.stop()

    signal.signal(signal.SIGINT, _stop)
    signal.signal(signal.SIGTERM, _stop)

    try:
        results = tailer.run()
    finally:
        tailer.close()

    failed = [r for r in results if not r.ok]
    for r in failed:
        logger.error(f"{r.target}: {type(r.error).__name__}: {r.error}")
    if failed:
        sys.exit(1)
    logger.success(f"Stopped cleanly ({sum(r.delivered for r in results)} events)")


@app.command("targets")
def targets(
    server: Optional[str] = server_opt(),
    collections: Optional[List[str]] = collections_opt(),
):
    """Print the resolved [database, collection] pairs."""
    opts = _options(server, collections)
    conn = ConnectionManager(opts.server)
    try:
        resolved = resolve_targets(opts.collections, conn.default_database)
    except TailError as e:
        logger.error(str(e))
        sys.exit(2)
    finally:
        conn.close()
    for t in resolved:
        typer.echo(json.dumps({"database": t.database, "collection": t.collection}))


@app.command("ping")
def ping(server: Optional[str] = server_opt()):
    """Check that the server is reachable."""
    opts = _options(server, None)
    conn = ConnectionManager(
        opts.server, server_selection_timeout_ms=opts.server_selection_timeout_ms
    )
    try:
        ok = conn.ping()
    except TailError as e:
        typer.echo(json.dumps({"ok": False, "error": str(e)}, indent=2))
        sys.exit(1)
    finally:
        conn.close()
    typer.echo(json.dumps({"ok": ok}, indent=2))


if __name__ == "__main__":
    app()
