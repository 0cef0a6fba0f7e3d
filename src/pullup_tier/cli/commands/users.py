"""User commands: log-workout, recompute, users."""

import json
from datetime import datetime, timezone
from typing import Annotated, Optional

import typer

from ...core.models import WorkoutLog
from ...io.aggregate_store import AggregateStore
from ...io.document_store import StoreError
from ...io.serializers import ValidationError, parse_int_csv
from ...jobs import make_log_store, update_user_score
from .. import views
from ..app import DataDirOption, JsonOption, app, get_store


@app.command("log-workout")
def log_workout(
    user_id: Annotated[str, typer.Argument(help="User id")],
    sets: Annotated[
        str,
        typer.Option("--sets", "-s", help="Reps per completed set, e.g. '5,5,4'"),
    ],
    up_time: Annotated[int, typer.Option("--up-time", help="Total concentric time")],
    down_time: Annotated[int, typer.Option("--down-time", help="Total eccentric time")],
    tempo: Annotated[
        str,
        typer.Option("--tempo", "-t", help="Per-rep tempo values, e.g. '40,41,39'"),
    ] = "",
    sub_type: Annotated[
        str,
        typer.Option("--sub-type", help="routine, test, free or custom"),
    ] = "free",
    goal: Annotated[
        Optional[str],
        typer.Option("--goal", help="Goal reps per set for routine/custom sessions"),
    ] = None,
    total_time: Annotated[
        Optional[int],
        typer.Option("--total-time", help="Session duration"),
    ] = None,
    date: Annotated[
        Optional[str],
        typer.Option("--date", help="Log key; defaults to the current UTC timestamp"),
    ] = None,
    country: Annotated[
        Optional[str],
        typer.Option("--country", "-c", help="Assign the user's country if not yet set"),
    ] = None,
    data_dir: DataDirOption = None,
) -> None:
    """
    Append a pull-up log for a user and update their tier score.
    """
    store = get_store(data_dir)

    try:
        log = WorkoutLog(
            date=date or datetime.now(timezone.utc).isoformat(),
            done_reps=parse_int_csv(sets, "sets"),
            up_time=up_time,
            down_time=down_time,
            tempo=parse_int_csv(tempo, "tempo"),
            sub_type=sub_type,
            goal_reps=parse_int_csv(goal, "goal") if goal else None,
            total_time=total_time,
        )
    except (ValidationError, ValueError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    try:
        if country:
            AggregateStore(store).assign_country(user_id, country)
        written = make_log_store(store).append_log(user_id, log)
        aggregate = AggregateStore(store).get(user_id)
    except (ValidationError, StoreError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if not written:
        views.print_info(f"Log {log.date} already recorded for {user_id}.")
        return

    views.print_success(f"Logged {log.sub_type} session {log.date} for {user_id}.")
    if aggregate is not None:
        views.console.print(
            f"pullupTierScore: [bold]{views.format_tier_score(aggregate.pullup_tier_score)}[/bold]"
        )


@app.command()
def recompute(
    user_id: Annotated[str, typer.Argument(help="User id")],
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Re-run the score aggregator for one user from their stored logs.
    """
    store = get_store(data_dir)
    try:
        result = update_user_score(store, user_id)
    except (ValidationError, StoreError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps({
            "user_id": user_id,
            "pullup_tier_score": result.pullup_tier_score,
            "scored": result.scored_count,
            "rescored": len(result.recomputed),
            "excluded": result.excluded_count,
        }, indent=2))
        return

    views.print_aggregation_result(user_id, result)


@app.command()
def users(
    user_ids: Annotated[list[str], typer.Argument(help="User ids to show")],
    data_dir: DataDirOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show stored country and tier score for the given users.
    """
    store = get_store(data_dir)
    try:
        aggregates = AggregateStore(store).get_many(user_ids)
    except (ValidationError, StoreError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps([
            {
                "user_id": user_id,
                "country": aggregates[user_id].country,
                "pullup_tier_score": aggregates[user_id].pullup_tier_score,
            }
            for user_id in user_ids
            if user_id in aggregates
        ], indent=2))
        return

    views.print_user_aggregates(user_ids, aggregates)
