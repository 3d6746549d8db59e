"""
Request router.

Framework-agnostic request handling shared by the FastAPI app and the CGI
adapter:
- classify(): method + path + parameters → one Command (or a Failure)
- authorization of mutating commands, before the lock is taken
- dispatch(): one branch per command type, under the coordinator lock
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Union
from urllib.parse import parse_qs

from pydantic import ValidationError

from ciqueue.coordinator import (
    CoordinatorService,
    ErrorKind,
    Failure,
    LockTimeoutError,
    Ok,
    Outcome,
    RecordFormatError,
    Result,
)

from . import pages
from .auth import Authorizer
from .schemas import (
    AbortCommand,
    AppendCommand,
    ClaimCommand,
    Command,
    Detail,
    FetchRecord,
    ListWaiting,
    LogCommand,
    Overview,
    Refresh,
    StopCommand,
    command_adapter,
    is_mutating,
)

logger = logging.getLogger(__name__)

TEXT = "text/plain; charset=utf-8"
HTML = "text/html; charset=utf-8"

GET_ROUTES = {
    "/": "overview",
    "/api/jobs/waiting": "list_waiting",
}
GET_PATTERNS = [
    (re.compile(r"^/api/jobs/(\d+)$"), "fetch_record"),
    (re.compile(r"^/job/(\d+)$"), "detail"),
]
POST_ROUTES = {
    "/api/refresh": "refresh",
    "/api/claim": "claim",
    "/api/append": "append",
    "/api/log": "log",
    "/api/stop": "stop",
    "/api/abort": "abort",
}


@dataclass
class InboundRequest:
    """Transport-neutral request. Header names are lower-cased."""

    method: str
    path: str
    query: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @classmethod
    def from_query_string(
        cls,
        method: str,
        path: str,
        query_string: str = "",
        headers: Optional[dict[str, str]] = None,
        body: bytes = b"",
    ) -> "InboundRequest":
        query = {k: v[-1] for k, v in parse_qs(query_string, keep_blank_values=True).items()}
        return cls(
            method=method.upper(),
            path=path or "/",
            query=query,
            headers={k.lower(): v for k, v in (headers or {}).items()},
            body=body,
        )


@dataclass
class Response:
    status_code: int
    body: str
    content_type: str = TEXT


def _failure_response(failure: Failure) -> Response:
    return Response(failure.status_code, failure.body)


def _body_params(request: InboundRequest) -> Union[dict, Failure]:
    """Parameters carried in a JSON object or form-encoded body."""
    if not request.body.strip():
        return {}
    content_type = request.headers.get("content-type", "")
    text = request.body.decode("utf-8", errors="replace")

    if "application/x-www-form-urlencoded" in content_type:
        return {k: v[-1] for k, v in parse_qs(text, keep_blank_values=True).items()}

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        return Failure(ErrorKind.BAD_REQUEST, f"body is not valid JSON: {e.msg}")
    if not isinstance(data, dict):
        return Failure(ErrorKind.BAD_REQUEST, "body must be a JSON object")
    return data


class RequestRouter:
    """Maps inbound requests onto coordinator operations."""

    def __init__(self, service: CoordinatorService, authorizer: Authorizer):
        self.service = service
        self.authorizer = authorizer

    # =========================================================================
    # Classification
    # =========================================================================

    def classify(self, request: InboundRequest) -> Union[Command, Failure]:
        method = request.method.upper()
        path = request.path.rstrip("/") or "/"

        params: dict = {}
        kind: Optional[str] = None

        if method == "GET":
            kind = GET_ROUTES.get(path)
            if kind is None:
                for pattern, name in GET_PATTERNS:
                    match = pattern.match(path)
                    if match:
                        kind = name
                        params["id"] = match.group(1)
                        break
            if kind is None:
                if path in POST_ROUTES:
                    return Failure(ErrorKind.BAD_REQUEST, f"{path} requires POST")
                return Failure(ErrorKind.NOT_FOUND, f"no resource at {path}")

        elif method == "POST":
            kind = POST_ROUTES.get(path)
            if kind is None:
                return Failure(ErrorKind.BAD_REQUEST, f"unknown command {path}")
            if kind == "log":
                params["data"] = request.body
            else:
                body_params = _body_params(request)
                if isinstance(body_params, Failure):
                    return body_params
                params.update(body_params)
            params.update(request.query)

        else:
            return Failure(ErrorKind.BAD_REQUEST, f"method {method} not supported")

        params["kind"] = kind
        try:
            return command_adapter.validate_python(params)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc'][1:]) or 'request'}: {err['msg']}"
                for err in e.errors()
            )
            return Failure(ErrorKind.BAD_REQUEST, problems)

    # =========================================================================
    # Dispatch
    # =========================================================================

    def dispatch(self, command: Command) -> Response:
        """Run one command. Caller holds the coordinator lock."""
        service = self.service

        if isinstance(command, ListWaiting):
            result: Result = Ok(" ".join(str(i) for i in service.waiting_ids()))
        elif isinstance(command, FetchRecord):
            result = service.fetch_record(command.id)
        elif isinstance(command, Overview):
            return Response(200, pages.render_overview(service.load_jobs()), HTML)
        elif isinstance(command, Detail):
            try:
                job = service.load_job(command.id)
            except RecordFormatError as e:
                logger.error(str(e))
                result = Failure(ErrorKind.RECORD_FORMAT_ERROR, str(e))
            else:
                if job is not None:
                    return Response(200, pages.render_detail(job), HTML)
                result = Failure(ErrorKind.NOT_FOUND, f"no job {command.id}")
        elif isinstance(command, Refresh):
            result = service.reconciler.refresh()
        elif isinstance(command, ClaimCommand):
            result = service.lifecycle.claim(command.id, command.worker_name)
        elif isinstance(command, AppendCommand):
            result = service.lifecycle.append(command.id, command.line)
        elif isinstance(command, LogCommand):
            result = service.lifecycle.log(command.id, command.data)
        elif isinstance(command, StopCommand):
            status = Outcome(command.status) if command.status else None
            result = service.lifecycle.stop(command.id, status)
        elif isinstance(command, AbortCommand):
            result = service.lifecycle.abort(command.id)
        else:
            raise TypeError(f"Unhandled command type: {type(command).__name__}")

        return Response(result.status_code, result.body)

    def handle(self, request: InboundRequest) -> Response:
        command = self.classify(request)
        if isinstance(command, Failure):
            logger.info(f"{request.method} {request.path} rejected: {command.body}")
            return _failure_response(command)

        if is_mutating(command) and not self.authorizer.is_authorized(request.headers):
            logger.warning(f"Unauthorized {command.kind} request")
            return _failure_response(
                Failure(ErrorKind.UNAUTHORIZED, "valid credentials required")
            )

        try:
            with self.service.lock:
                response = self.dispatch(command)
        except LockTimeoutError as e:
            logger.error(str(e))
            return _failure_response(Failure(ErrorKind.BUSY, str(e)))
        except Exception as e:
            logger.exception(f"Unhandled error in {command.kind}")
            return _failure_response(Failure(ErrorKind.UNHANDLED, str(e)))

        if response.status_code >= 400:
            logger.info(f"{command.kind} → {response.status_code}: {response.body}")
        return response
