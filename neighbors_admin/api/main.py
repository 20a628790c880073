"""FastAPI application exposing the webhook and the dashboard read models."""

from __future__ import annotations

from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

from ..config import CONFIG, reload_config
from ..logger import configure_logging
from .routes import businesses, delivery_routes, memberships, people, webhooks


def _configure_cors(api_app: FastAPI) -> None:
    origins: List[str] = [origin for origin in getattr(CONFIG, "api_cors_origins", ()) if origin]
    if not origins:
        return

    api_app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def create_app() -> FastAPI:
    api_app = FastAPI(
        title=CONFIG.api_title,
        version=CONFIG.api_version,
        description=(
            "Admin API for neighbors, sponsor businesses, delivery routes, memberships "
            "and the Stripe membership webhook. "
            "Database handles are created lazily on first use."
        ),
    )
    _configure_cors(api_app)

    @api_app.get("/health", tags=["health"])  # pragma: no cover - trivial fast check
    def healthcheck() -> dict[str, str]:
        """Simple health endpoint for load balancers and smoke tests."""

        return {"status": "ok"}

    api_app.include_router(webhooks.router, prefix="/api", tags=["webhooks"])
    api_app.include_router(people.router, prefix="/api", tags=["people"])
    api_app.include_router(memberships.router, prefix="/api", tags=["memberships"])
    api_app.include_router(businesses.router, prefix="/api", tags=["businesses"])
    api_app.include_router(delivery_routes.router, prefix="/api", tags=["routes"])
    return api_app


load_dotenv()
reload_config()
configure_logging()

app = create_app()
