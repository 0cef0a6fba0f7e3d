"""Scoring command: score a single session without touching the store."""

import json
from typing import Annotated, Optional

import typer

from ...core.config import TIER_LOGIC_VERSION
from ...core.tier_score import compute_negative_ratio, tier_score_breakdown
from ...io.serializers import ValidationError, parse_int_csv
from .. import views
from ..app import JsonOption, app


@app.command()
def score(
    sets: Annotated[
        str,
        typer.Option("--sets", "-s", help="Reps per set, e.g. '5,5,4'"),
    ],
    tempo: Annotated[
        str,
        typer.Option("--tempo", "-t", help="Per-rep tempo values, e.g. '40,41,39'"),
    ] = "",
    negative_ratio: Annotated[
        Optional[float],
        typer.Option("--negative-ratio", "-n", help="Eccentric fraction of rep time"),
    ] = None,
    up_time: Annotated[
        Optional[int],
        typer.Option("--up-time", help="Total concentric time (alternative to --negative-ratio)"),
    ] = None,
    down_time: Annotated[
        Optional[int],
        typer.Option("--down-time", help="Total eccentric time (alternative to --negative-ratio)"),
    ] = None,
    explain: Annotated[
        bool,
        typer.Option("--explain", "-x", help="Show every term of the formula"),
    ] = False,
    json_out: JsonOption = False,
) -> None:
    """
    Compute the tier score of one pull-up session.
    """
    try:
        set_reps = parse_int_csv(sets, "sets")
        tempo_values = parse_int_csv(tempo, "tempo")
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if not set_reps:
        views.print_error("--sets needs at least one set")
        raise typer.Exit(1)

    if negative_ratio is None:
        if up_time is None or down_time is None:
            views.print_error("Give --negative-ratio or both --up-time and --down-time")
            raise typer.Exit(1)
        try:
            negative_ratio = compute_negative_ratio(up_time, down_time)
        except ValueError as e:
            views.print_error(str(e))
            raise typer.Exit(1)

    breakdown = tier_score_breakdown(set_reps, negative_ratio, tempo_values)

    if json_out:
        print(json.dumps({
            "score": breakdown.total,
            "algorithm_version": TIER_LOGIC_VERSION,
            "base": breakdown.base,
            "pace_correct_bonus": round(breakdown.pace_correct_bonus, 4),
            "pace_consistency_bonus": round(breakdown.pace_consistency_bonus, 4),
            "negative_ratio_bonus": round(breakdown.negative_ratio_bonus, 4),
        }, indent=2))
        return

    if explain:
        views.print_score_breakdown(breakdown)
        return

    views.console.print(f"Tier score: [bold green]{breakdown.total}[/bold green]")
