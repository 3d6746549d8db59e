"""
FastAPI application entry point.

Every path except /health is forwarded to the RequestRouter, which owns
classification, authorization and dispatch. Responses are plain text
(HTML for the overview and detail pages).

Usage:
    uvicorn ciqueue.api.main:app --host 127.0.0.1 --port 8000
"""

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import Response as HTTPResponse
from starlette.concurrency import run_in_threadpool

from ciqueue import __version__
from ciqueue.infra import Settings, setup_logging

from ._coordinator_state import get_router, init_router
from .router import InboundRequest

load_dotenv()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging and build the router from the environment."""
    try:
        get_router()
    except RuntimeError:
        settings = Settings.from_env()
        setup_logging(settings.log_level, settings.log_dir)
        init_router(settings)
        logger.info(f"ciqueue {__version__} ready ({settings.store_backend} store in {settings.data_dir})")

    yield


app = FastAPI(
    title="CI Regression Queue",
    lifespan=lifespan,
    description="""
## CI Regression Queue

Coordinates regression-test jobs between GitHub and a pool of workers.

### Authentication
Mutating endpoints (`POST /api/...`) require `Authorization: Bearer <CIQUEUE_API_TOKEN>`
or a webhook sender header matching `CIQUEUE_WEBHOOK_PREFIX`.

### Usage
```bash
curl -X POST "http://localhost:8000/api/claim?id=3&worker_name=builder-1" \\
  -H "Authorization: Bearer your-token"
```
    """,
    version=__version__,
)


# Health check - NO authentication (operational endpoint)
@app.get("/health")
async def health_check():
    """Health check endpoint. Not authenticated."""
    return {"status": "ok", "version": __version__}


@app.api_route(
    "/{path:path}",
    methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def coordinator(path: str, request: Request) -> HTTPResponse:
    inbound = InboundRequest(
        method=request.method,
        path="/" + path,
        query=dict(request.query_params),
        headers={k.lower(): v for k, v in request.headers.items()},
        body=await request.body(),
    )
    # Store and lock calls block
    response = await run_in_threadpool(get_router().handle, inbound)
    return HTTPResponse(
        content=response.body,
        status_code=response.status_code,
        media_type=response.content_type,
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000)
