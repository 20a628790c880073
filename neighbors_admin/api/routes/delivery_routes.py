"""Newsletter delivery routes with their primary deliverer."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ...db import DatabaseClient, PersistenceError, RouteRecord
from ..dependencies import get_public_database
from ..schemas import DelivererResponse, RouteResponse

router = APIRouter()


def _route_response(route: RouteRecord) -> RouteResponse:
    deliverer = route.deliverer
    return RouteResponse(
        id=route.id,
        name=route.route_name,
        leaflets=route.leaflet_count,
        dropoff_location=route.dropoff_location or "",
        distributor=route.distributor,
        status=route.status.value,
        route_type=route.route_type.value if route.route_type else None,
        primary_deliverer_id=route.primary_deliverer_id,
        primary_deliverer_email=route.primary_deliverer_email,
        deliverer=(
            DelivererResponse(
                id=deliverer.id,
                name=deliverer.full_name or "",
                email=deliverer.email or "",
                address=deliverer.address or "",
            )
            if deliverer
            else None
        ),
    )


@router.get("/routes", response_model=List[RouteResponse])
def list_routes(db: DatabaseClient = Depends(get_public_database)) -> List[RouteResponse]:
    try:
        routes = db.list_routes()
    except PersistenceError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return [_route_response(route) for route in routes]
