"""
CLI entry point using Typer.

Provides commands for scoring and rankings:
- score: Compute the tier score of one session
- log-workout: Append a pull-up log and update the user's score
- recompute: Re-run the score aggregator for a user
- users: Show stored aggregates for a set of users
- rank: Rebuild the country ranking once
- show-ranking: Display the published ranking
- schedule: Rebuild the ranking on an interval
"""

from typing import Annotated, Optional

import typer

from ..core.engine.config_loader import get_settings
from ..logging_setup import setup_logging
from . import commands  # noqa: F401  registers commands on app
from .app import app


@app.callback()
def main_callback(
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", help="DEBUG, INFO, WARNING or ERROR (default from settings.yaml)"),
    ] = None,
) -> None:
    """
    Pull-up tier scoring, per-user aggregates and country rankings.
    """
    settings = get_settings()
    setup_logging(level=(log_level or settings.log_level).upper(), log_file=settings.log_file)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
