"""FastAPI application main module.

This module defines the FastAPI application instance and the service-level
endpoints of the TagRec API: health check, recommender status and query
metrics.
"""

from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tagrec import __version__
from tagrec.api.exceptions import TagRecAPIException
from tagrec.api.logging_config import RequestLoggingMiddleware
from tagrec.api.metrics import metrics_service
from tagrec.api.routes import items, recommend

# Create FastAPI application instance
app = FastAPI(
    title="TagRec API",
    description="Item-item recommendations from user ratings and item tags",
    version=__version__,
)

app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(recommend.router)
app.include_router(items.router)


@app.exception_handler(TagRecAPIException)
async def tagrec_exception_handler(
    request: Request, exc: TagRecAPIException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": type(exc).__name__,
            "message": exc.message,
            "details": exc.details,
        },
    )


@app.get("/ping")
def ping() -> Dict[str, str]:
    """Health check endpoint.

    Example:
        >>> response = client.get("/ping")
        >>> assert response.json() == {"status": "ok"}
    """
    return {"status": "ok"}


@app.get("/status")
def get_status() -> Dict[str, Any]:
    """Report whether the recommender is loaded and what it holds.

    Does not trigger loading.
    """
    return recommend.get_cache_status()


@app.get("/metrics")
def get_metrics() -> Dict[str, Any]:
    return metrics_service.get_metrics()


if __name__ == "__main__":
    import uvicorn

    from tagrec import config
    from tagrec.api.logging_config import setup_logging

    setup_logging(config.LOG_LEVEL)

    uvicorn.run(
        "tagrec.api.main:app",
        host="0.0.0.0",
        port=8000,
    )
