"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of scores and rankings.
"""

from rich.console import Console
from rich.table import Table

from ..core.config import UNSCORED_SENTINEL
from ..core.models import AggregationResult, RankingSnapshot, TierScoreBreakdown, UserAggregate

console = Console()


def format_tier_score(score: float | None) -> str:
    """Human form of a stored pullupTierScore."""
    if score is None:
        return "-"
    if score == UNSCORED_SENTINEL:
        return "unscored"
    return f"{score:.2f}"


def print_score_breakdown(breakdown: TierScoreBreakdown) -> None:
    """
    Print every term of a tier score computation.

    Args:
        breakdown: Result of tier_score_breakdown()
    """
    table = Table(title="Tier Score", show_header=True, header_style="dim")
    table.add_column("Term")
    table.add_column("Value", justify="right")

    mean = "-" if breakdown.tempo_mean is None else f"{breakdown.tempo_mean:.2f}"
    std = "-" if breakdown.tempo_std_dev is None else f"{breakdown.tempo_std_dev:.3f}"

    table.add_row("Base volume", str(breakdown.base))
    table.add_row("Tempo mean", mean)
    table.add_row("Tempo σ (scaled)", std)
    table.add_row("Negative ratio (clamped)", f"{breakdown.clamped_negative_ratio:.3f}")
    table.add_row("Pace correctness bonus", f"{breakdown.pace_correct_bonus:.2f}")
    table.add_row("Pace consistency bonus", f"{breakdown.pace_consistency_bonus:.2f}")
    table.add_row("Negative ratio bonus", f"{breakdown.negative_ratio_bonus:.2f}")
    table.add_row("[bold]Score[/bold]", f"[bold green]{breakdown.total}[/bold green]")

    console.print(table)


def print_aggregation_result(user_id: str, result: AggregationResult) -> None:
    """Print the outcome of one user score update."""
    console.print(
        f"User [cyan]{user_id}[/cyan]: pullupTierScore = "
        f"[bold]{format_tier_score(result.pullup_tier_score)}[/bold] "
        f"([dim]{result.scored_count} scored, {len(result.recomputed)} rescored, "
        f"{result.excluded_count} excluded[/dim])"
    )


def print_user_aggregates(user_ids: list[str], aggregates: dict[str, UserAggregate]) -> None:
    """
    Print aggregates in the order requested; unknown users are marked.
    """
    table = Table(title="Users")
    table.add_column("User", style="cyan")
    table.add_column("Country", style="magenta")
    table.add_column("Tier score", justify="right", style="bold")

    for user_id in user_ids:
        aggregate = aggregates.get(user_id)
        if aggregate is None:
            table.add_row(user_id, "[dim]not found[/dim]", "-")
            continue
        table.add_row(
            user_id,
            aggregate.country or "-",
            format_tier_score(aggregate.pullup_tier_score),
        )

    console.print(table)


def print_rankings(snapshot: RankingSnapshot) -> None:
    """
    Print the country ranking table.

    Args:
        snapshot: Published ranking snapshot
    """
    if not snapshot.rankings:
        print_info("No ranked users yet.")
        return

    table = Table(title=f"Country Rankings ({snapshot.updated_at})")
    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Country", style="cyan")
    table.add_column("Users", justify="right")
    table.add_column("Total", justify="right", style="bold")
    table.add_column("Average", justify="right")

    for i, row in enumerate(snapshot.rankings, 1):
        table.add_row(
            str(i),
            row.country,
            str(row.user_count),
            f"{row.total_score:.2f}",
            f"{row.average_score:.2f}",
        )

    console.print(table)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")
