"""FastAPI application main module.

This module defines the FastAPI application instance for the CatalogRec
service: it wires logging, error rendering and the routers, and provides
the health, status and metrics endpoints.
"""

import logging
from typing import Any, Dict

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from catalogrec import __version__
from catalogrec.api.config import settings
from catalogrec.api.dependencies import peek_services
from catalogrec.api.logging_config import RequestLoggingMiddleware, setup_logging
from catalogrec.api.metrics import metrics_service
from catalogrec.api.routes import products, recommend, users
from catalogrec.recommender.exceptions import CatalogRecException

# Configure module logger
logger = logging.getLogger(__name__)

setup_logging(settings.log_level)

# Create FastAPI application instance
app = FastAPI(
    title="CatalogRec API",
    description="Rule-based product recommendations from user interaction history",
    version=__version__,
)

app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(recommend.router)
app.include_router(products.router)
app.include_router(users.router)


@app.exception_handler(CatalogRecException)
async def catalogrec_exception_handler(request: Request, exc: CatalogRecException) -> JSONResponse:
    """Render engine and store errors as JSON with their status code."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        exc.message,
        extra={
            "path": str(request.url.path),
            "error_type": type(exc).__name__,
            "status_code": exc.status_code,
        },
    )
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

    Returns a simple status response to verify the API is running.

    Returns:
        Dictionary with status key set to "ok".

    Example:
        >>> response = client.get("/ping")
        >>> assert response.json() == {"status": "ok"}
    """
    return {"status": "ok"}


@app.get("/status")
def catalog_status() -> Dict[str, Any]:
    """Report whether the catalog is loaded and how large it is.

    Never triggers a load, so it answers even when data is missing.
    """
    services = peek_services()
    if services is None:
        return {
            "catalog_loaded": False,
            "timestamp_last_loaded": None,
            "num_products": 0,
            "num_users": 0,
        }
    return {
        "catalog_loaded": True,
        "timestamp_last_loaded": services.loaded_at.isoformat(),
        "num_products": len(services.catalog),
        "num_users": len(services.interactions),
    }


@app.get("/metrics")
def metrics() -> Dict[str, Any]:
    """Latency statistics for recommendation calls."""
    return metrics_service.get_metrics()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "catalogrec.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
