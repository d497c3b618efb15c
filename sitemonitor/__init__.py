"""Site-health crawler: discovers same-site pages, records anomalies and diffs the link set against a baseline."""

__version__ = "0.1.0"
