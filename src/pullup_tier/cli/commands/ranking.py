"""Ranking commands: rank, show-ranking, schedule."""

import json
import time
from functools import partial
from typing import Annotated, Optional

import typer
from loguru import logger

from ...core.engine.config_loader import get_settings
from ...io.aggregate_store import AggregateStore
from ...io.document_store import StoreError
from ...io.serializers import ValidationError, ranking_snapshot_to_dict
from ...jobs import update_country_rankings
from ...scheduler import RankingScheduler
from .. import views
from ..app import DataDirOption, JsonOption, app, get_store


@app.command()
def rank(
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Rebuild and publish the country ranking once.
    """
    store = get_store(data_dir)
    try:
        snapshot = update_country_rankings(store, page_size=get_settings().page_size)
    except StoreError as e:
        views.print_error(f"{e} (previous ranking kept)")
        raise typer.Exit(1)

    if json_out:
        print(json.dumps(ranking_snapshot_to_dict(snapshot), indent=2))
        return

    views.print_rankings(snapshot)


@app.command("show-ranking")
def show_ranking(
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show the last published country ranking.
    """
    store = get_store(data_dir)
    try:
        snapshot = AggregateStore(store).load_ranking_snapshot()
    except (StoreError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if snapshot is None:
        views.print_info("No ranking published yet. Run 'rank' or 'schedule'.")
        return

    if json_out:
        print(json.dumps(ranking_snapshot_to_dict(snapshot), indent=2))
        return

    views.print_rankings(snapshot)


@app.command()
def schedule(
    interval: Annotated[
        Optional[int],
        typer.Option("--interval", "-i", help="Minutes between runs (default from settings.yaml)"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Rebuild the country ranking on a fixed interval until interrupted.
    """
    settings = get_settings()
    store = get_store(data_dir)

    scheduler = RankingScheduler(
        partial(update_country_rankings, store, page_size=settings.page_size),
        interval_minutes=interval or settings.ranking_interval_minutes,
    )
    scheduler.run_now()
    scheduler.start()
    views.print_info("Ranking scheduler running (Ctrl+C to stop)")

    try:
        while True:
            time.sleep(60)
            logger.debug(f"Scheduler status: {scheduler.get_status()}")
    except KeyboardInterrupt:
        scheduler.stop()
