"""threadrank: ranking, threading and voting for link-aggregator discussions."""

__version__ = "0.1.0"
