"""Sponsor businesses read model."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ...db import BusinessRecord, DatabaseClient, PersistenceError
from ..dependencies import get_public_database
from ..schemas import BusinessResponse

router = APIRouter()


def _business_response(business: BusinessRecord) -> BusinessResponse:
    return BusinessResponse(
        id=business.id,
        company_name=business.name,
        contact_name=business.contact_name or "",
        email=business.email or "",
        phone=business.phone or "",
        sponsorship_tags=[tag.value for tag in business.sponsorship_tags],
        linked_events=list(business.linked_events),
        address=business.address or "",
        notes=business.notes or "",
        status=business.status.value,
    )


@router.get("/businesses", response_model=List[BusinessResponse])
def list_businesses(db: DatabaseClient = Depends(get_public_database)) -> List[BusinessResponse]:
    try:
        businesses = db.list_businesses()
    except PersistenceError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return [_business_response(business) for business in businesses]
