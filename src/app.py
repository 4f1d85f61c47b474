"""Site Forms Service - FastAPI server for contact and newsletter submissions."""

import os
import logging
from typing import Iterable, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

# Load environment variables from .env file (for local development)
load_dotenv()

from src.shared.contact.routes import router as contact_router
from src.shared.mail.email_service import EmailService
from src.shared.newsletter.routes import router as newsletter_router
from src.shared.rate_limit.database import DatabaseRateLimiter, create_session_factory
from src.shared.rate_limit.limiter import RateLimiter
from src.shared.security.headers import ALLOWED_ORIGINS
from src.shared.submissions.pipeline import INTERNAL_ERROR_MESSAGE


def create_rate_limiter():
    """Build the rate limiter selected by RATE_LIMIT_BACKEND ('memory' or 'database')."""
    backend = os.environ.get("RATE_LIMIT_BACKEND", "memory")
    if backend == "memory":
        return RateLimiter()
    if backend == "database":
        database_url = os.environ.get("DATABASE_URL")
        if not database_url:
            raise ValueError(
                "DATABASE_URL environment variable is required when RATE_LIMIT_BACKEND=database. "
                "Please set it to your database connection string."
            )
        return DatabaseRateLimiter(create_session_factory(database_url))
    raise ValueError(f"Unknown RATE_LIMIT_BACKEND: {backend}")


def create_app(
    rate_limiter=None,
    email_service: Optional[EmailService] = None,
    allowed_origins: Optional[Iterable[str]] = None,
) -> FastAPI:
    """
    Create the application with its shared collaborators.

    Args:
        rate_limiter: Limiter shared by every form endpoint (built from env if omitted)
        email_service: Email sender (built from env if omitted)
        allowed_origins: Origins accepted by the CSRF check
    """
    app = FastAPI(
        title="Site Forms Service",
        description="Contact form and newsletter signup endpoints",
        version="0.1.0",
    )

    app.state.rate_limiter = rate_limiter if rate_limiter is not None else create_rate_limiter()
    app.state.email_service = email_service if email_service is not None else EmailService()
    app.state.allowed_origins = list(allowed_origins) if allowed_origins is not None else list(ALLOWED_ORIGINS)

    # Include contact routes
    app.include_router(contact_router)

    # Include newsletter routes
    app.include_router(newsletter_router)

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Generic 500 for anything escaping a route."""
        logging.error(f"Unhandled exception on {request.url.path}: {str(exc)}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": INTERNAL_ERROR_MESSAGE},
        )

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(app, host="0.0.0.0", port=int(os.environ.get("PORT", "8000")))
