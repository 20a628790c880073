"""People read model with the linked membership projected onto each person."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ...db import DatabaseClient, PersistenceError, PersonRecord
from ..dependencies import get_public_database
from ..schemas import PersonResponse

router = APIRouter()


def _person_response(person: PersonRecord) -> PersonResponse:
    membership = person.membership
    return PersonResponse(
        id=person.id,
        name=person.full_name or "",
        email=person.email or "",
        address=person.address or "",
        household_id=person.household_id,
        membership_id=person.membership_id or (membership.id if membership else None),
        membership_tier=membership.tier.value if membership and membership.tier else None,
        membership_status=membership.status.value if membership and membership.status else None,
        last_renewal=membership.last_renewal if membership else None,
    )


@router.get("/people", response_model=List[PersonResponse])
def list_people(db: DatabaseClient = Depends(get_public_database)) -> List[PersonResponse]:
    try:
        people = db.list_people_with_memberships()
    except PersistenceError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc)) from exc
    return [_person_response(person) for person in people]
