import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from daily_review.config import DEBUG
from daily_review.database import init_db, DATABASE_URL
from daily_review.routes import (
    auth_router,
    items_router,
    review_router,
    invite_router,
)

logging.basicConfig(level=logging.DEBUG if DEBUG else logging.INFO)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Daily Review",
    description="Daily review journal with AI period summaries",
    version="1.0.0"
)

# Browser clients call the API from any origin; CORSMiddleware also answers
# OPTIONS preflight for every route.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Admin-Key"],
)

# Include routers
app.include_router(auth_router)
app.include_router(items_router)
app.include_router(review_router)
app.include_router(invite_router)


@app.on_event("startup")
def on_startup():
    """Ensure DB is reachable and initialized at startup. If initialization
    fails the app will raise and stop with a clear error message.
    """
    try:
        init_db()
    except Exception as e:
        raise RuntimeError(
            f"Database initialization failed for DATABASE_URL={DATABASE_URL}: {e}"
        ) from e
    logger.info("Database initialized")


@app.get("/health")
def health():
    return {"status": "ok"}


# Error handlers
@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Render every HTTP error as {"error": message}."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are client errors like any other validation failure."""
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.exception_handler(Exception)
async def server_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
