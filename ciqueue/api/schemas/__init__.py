"""
API schemas package.
"""

from .commands import (
    ListWaiting,
    FetchRecord,
    Overview,
    Detail,
    Refresh,
    ClaimCommand,
    AppendCommand,
    LogCommand,
    StopCommand,
    AbortCommand,
    Command,
    command_adapter,
    is_mutating,
)

__all__ = [
    "ListWaiting",
    "FetchRecord",
    "Overview",
    "Detail",
    "Refresh",
    "ClaimCommand",
    "AppendCommand",
    "LogCommand",
    "StopCommand",
    "AbortCommand",
    "Command",
    "command_adapter",
    "is_mutating",
]
