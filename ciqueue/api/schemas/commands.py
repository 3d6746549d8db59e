"""
Request command schemas.

Every inbound request is classified into exactly one of these commands.
The union is closed and discriminated on `kind`; parameters are validated
by pydantic and a validation failure is a bad request.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, PositiveInt, TypeAdapter


# =============================================================================
# Read-only queries
# =============================================================================


class ListWaiting(BaseModel):
    """GET /api/jobs/waiting"""

    kind: Literal["list_waiting"] = "list_waiting"


class FetchRecord(BaseModel):
    """GET /api/jobs/<id>"""

    kind: Literal["fetch_record"] = "fetch_record"
    id: PositiveInt


class Overview(BaseModel):
    """GET /"""

    kind: Literal["overview"] = "overview"


class Detail(BaseModel):
    """GET /job/<id>"""

    kind: Literal["detail"] = "detail"
    id: PositiveInt


# =============================================================================
# Mutating commands (authorization required)
# =============================================================================


class Refresh(BaseModel):
    """POST /api/refresh"""

    kind: Literal["refresh"] = "refresh"


class ClaimCommand(BaseModel):
    """POST /api/claim"""

    kind: Literal["claim"] = "claim"
    id: PositiveInt
    worker_name: str = Field(..., min_length=1, max_length=200)


class AppendCommand(BaseModel):
    """POST /api/append"""

    kind: Literal["append"] = "append"
    id: PositiveInt
    line: str


class LogCommand(BaseModel):
    """POST /api/log (raw body is the log data)"""

    kind: Literal["log"] = "log"
    id: PositiveInt
    data: bytes = b""


class StopCommand(BaseModel):
    """POST /api/stop"""

    kind: Literal["stop"] = "stop"
    id: PositiveInt
    status: Optional[Literal["success", "failure", "error"]] = None


class AbortCommand(BaseModel):
    """POST /api/abort"""

    kind: Literal["abort"] = "abort"
    id: PositiveInt


MUTATING_COMMANDS = (Refresh, ClaimCommand, AppendCommand, LogCommand, StopCommand, AbortCommand)

Command = Annotated[
    Union[
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
    ],
    Field(discriminator="kind"),
]

command_adapter: TypeAdapter = TypeAdapter(Command)


def is_mutating(command: BaseModel) -> bool:
    return isinstance(command, MUTATING_COMMANDS)
