"""FastAPI dependencies shared across the API.

The privileged and public database handles are built once per application
and kept on ``app.state``; routes ask for the one matching their boundary.
"""

from __future__ import annotations

import logging
from typing import Callable

from fastapi import HTTPException, Request, status

from ..billing import BillingProvider, get_billing_provider
from ..db import (
    DatabaseClient,
    DatabaseNotConfiguredError,
    create_public_database_client,
    create_service_database_client,
)

logger = logging.getLogger(__name__)


def get_service_database(request: Request) -> DatabaseClient:
    """Privileged handle for the webhook and the linking job."""

    client = getattr(request.app.state, "service_database", None)
    if client is None:
        try:
            client = create_service_database_client()
        except DatabaseNotConfiguredError as exc:
            logger.error("Privileged database client unavailable: %s", exc)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Database is not configured",
            ) from exc
        request.app.state.service_database = client
    return client


def get_public_database(request: Request) -> DatabaseClient:
    """Row-level-security handle for dashboard read models."""

    client = getattr(request.app.state, "public_database", None)
    if client is None:
        try:
            client = create_public_database_client()
        except DatabaseNotConfiguredError as exc:
            logger.error("Public database client unavailable: %s", exc)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Database is not configured",
            ) from exc
        request.app.state.public_database = client
    return client


def get_billing() -> BillingProvider:
    """Return the configured billing provider."""

    return get_billing_provider()


def get_service_database_resolver(request: Request) -> Callable[[], DatabaseClient]:
    """Defer the privileged handle until a webhook event actually needs it."""

    return lambda: get_service_database(request)
