"""Route modules for the API."""

from . import businesses, delivery_routes, memberships, people, webhooks

__all__ = [
    "businesses",
    "delivery_routes",
    "memberships",
    "people",
    "webhooks",
]
