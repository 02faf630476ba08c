"""Cloud cost dashboard client: state reconciliation, cost estimation and editing."""

__version__ = "1.0.0"
