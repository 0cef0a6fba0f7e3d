"""pullup-tier: versioned pull-up tier scoring with per-user aggregates and country rankings."""

__version__ = "0.1.0"
