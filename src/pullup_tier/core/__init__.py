"""Pure scoring, aggregation and ranking logic."""
