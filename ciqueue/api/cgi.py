"""
CGI adapter.

Reads one request from the CGI environment and stdin, runs it through the
RequestRouter and writes the response with a `Status:` header to stdout.

Usage (as the CGI script):
    python -m ciqueue cgi
"""

import os
import sys
from typing import BinaryIO, Mapping, Optional

from .router import InboundRequest, RequestRouter, Response

STATUS_REASONS = {
    200: "OK",
    400: "Bad Request",
    401: "Unauthorized",
    404: "Not Found",
    409: "Conflict",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def request_from_environ(environ: Mapping[str, str], stdin: BinaryIO) -> InboundRequest:
    """Build an InboundRequest from CGI meta-variables."""
    headers = {}
    for key, value in environ.items():
        if key.startswith("HTTP_"):
            headers[key[5:].replace("_", "-").lower()] = value
    # The server passes the body type as CONTENT_TYPE, not HTTP_CONTENT_TYPE
    if environ.get("CONTENT_TYPE"):
        headers["content-type"] = environ["CONTENT_TYPE"]

    try:
        length = int(environ.get("CONTENT_LENGTH") or 0)
    except ValueError:
        length = 0
    body = stdin.read(length) if length > 0 else b""

    return InboundRequest.from_query_string(
        method=environ.get("REQUEST_METHOD", "GET"),
        path=environ.get("PATH_INFO", "/"),
        query_string=environ.get("QUERY_STRING", ""),
        headers=headers,
        body=body,
    )


def write_response(response: Response, stdout: BinaryIO) -> None:
    reason = STATUS_REASONS.get(response.status_code, "")
    payload = response.body.encode("utf-8")
    head = (
        f"Status: {response.status_code} {reason}\r\n"
        f"Content-Type: {response.content_type}\r\n"
        f"Content-Length: {len(payload)}\r\n"
        f"\r\n"
    )
    stdout.write(head.encode("ascii"))
    stdout.write(payload)
    stdout.flush()


def run(
    router: RequestRouter,
    environ: Optional[Mapping[str, str]] = None,
    stdin: Optional[BinaryIO] = None,
    stdout: Optional[BinaryIO] = None,
) -> int:
    """Handle a single CGI request. Returns the HTTP status code."""
    environ = os.environ if environ is None else environ
    stdin = sys.stdin.buffer if stdin is None else stdin
    stdout = sys.stdout.buffer if stdout is None else stdout

    response = router.handle(request_from_environ(environ, stdin))
    write_response(response, stdout)
    return response.status_code
