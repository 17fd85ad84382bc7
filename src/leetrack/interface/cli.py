"""leetrack CLI: service runner and record inspection."""

import json
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer

from leetrack.application.config import config_files, resolve_config
from leetrack.domain.constants import LOG_FILE_FORMAT, LOG_FILENAME, SETTINGS_KEY
from leetrack.domain.models import ProblemStatus, ReviewSettings

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="leetrack: spaced-repetition reviews for accepted LeetCode submissions.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage leetrack configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


def setup_file_logging(log_dir: Path, verbose: int = 1) -> Path:
    """
    Mirror the `leetrack` loggers into `log_dir/leetrack.log`.

    verbose >= 2 logs at DEBUG, otherwise INFO.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILENAME
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FILE_FORMAT))

    pkg_logger = logging.getLogger("leetrack")
    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(logging.DEBUG if verbose >= 2 else logging.INFO)
    return log_file


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 1,
):
    """Global settings for leetrack."""
    ctx.ensure_object(dict)
    ctx.obj["verbose_bonus"] = verbose
    if verbose >= 2:
        logging.getLogger("leetrack").setLevel(logging.DEBUG)


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def serve(
    ctx: typer.Context,
    host: Annotated[str | None, typer.Option(help="Interface to bind.")] = None,
    port: Annotated[int | None, typer.Option(help="Port to listen on.")] = None,
    data_dir: Annotated[
        Path | None, typer.Option(help="Directory holding the durable store.")
    ] = None,
):
    """[bold green]Run[/bold green] the local tracking service."""
    import uvicorn

    from leetrack.server import create_app

    verbose = ctx.obj.get("verbose_bonus", 1) if ctx.obj else 1
    config = resolve_config(
        {
            "host": host,
            "port": port,
            "data_dir": data_dir,
            # a plain run leaves the configured verbosity alone
            "verbose": verbose if verbose > 1 else None,
        }
    )
    log_file = setup_file_logging(config.log_dir, config.verbose)
    logger.info(f"Logging to {log_file}")
    uvicorn.run(create_app(config), host=config.host, port=config.port)


@app.command()
def problems(
    status: Annotated[
        ProblemStatus | None, typer.Option(help="Only show problems in this state.")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
    data_dir: Annotated[
        Path | None, typer.Option(help="Directory holding the durable store.")
    ] = None,
):
    """List tracked problems with their review status."""
    import asyncio

    from leetrack.application.factory import get_durable_store
    from leetrack.application.forgetting_curve import derive_status, next_review_time
    from leetrack.application.problem_store import ProblemStore
    from leetrack.application.settings import settings_from_dict
    from leetrack.application.tracker import now_ms
    from leetrack.infrastructure.adapters.kv_stores import MemoryStore

    config = resolve_config({"data_dir": data_dir})

    async def run():
        durable = get_durable_store(config)
        store = ProblemStore(fast=MemoryStore(name="fast"), durable=durable)
        await store.reconcile_on_startup()
        # read-only: a missing curve falls back to the default without storing it
        stored = await durable.get([SETTINGS_KEY])
        settings = settings_from_dict(stored.get(SETTINGS_KEY)) or ReviewSettings()
        records = await store.list_records(settings)
        now = now_ms()
        rows = []
        for record in records:
            record_status = derive_status(record, settings, now)
            if status is not None and record_status != status:
                continue
            rows.append((record, record_status, next_review_time(record, settings)))
        return rows

    rows = asyncio.run(run())

    if json_output:
        payload = [
            {**r.to_dict(), "status": s.value, "nextReviewTime": n} for r, s, n in rows
        ]
        typer.echo(json.dumps(payload, indent=2))
        return

    if not rows:
        typer.secho("No problems tracked yet.", fg="yellow")
        return

    for record, record_status, next_review in rows:
        due = (
            datetime.fromtimestamp(next_review / 1000).strftime("%Y-%m-%d")
            if next_review is not None
            else "-"
        )
        typer.echo(
            f"{record.id:>5}  {record.title:<40}  {record.difficulty:<6}  "
            f"p={record.proficiency}  {record_status.value:<9}  next={due}"
        )


@app.command()
def logs():
    """Open the log directory."""
    import subprocess

    config = resolve_config()
    if not config.log_dir.exists():
        config.log_dir.mkdir(parents=True, exist_ok=True)

    if sys.platform == "darwin":
        subprocess.run(["open", str(config.log_dir)])
    elif sys.platform == "win32":
        os.startfile(str(config.log_dir))
    else:
        subprocess.run(["xdg-open", str(config.log_dir)])


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))


@config_app.command("path")
def config_path():
    """Print the config file in use, or where one would be read from."""
    existing = next((f for f in config_files() if f.exists()), None)
    typer.echo(str(existing or config_files()[0]))
