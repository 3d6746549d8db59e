"""
ciqueue - regression-test job coordinator.

Tracks CI jobs derived from source-control snapshots through
Waiting → Running → Stopped → Aborted and reconciles the Waiting set
against the upstream snapshot feed.
"""

__version__ = "1.0.0"
