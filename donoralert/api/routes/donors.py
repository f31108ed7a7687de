"""Donor registration, listing and administrative removal.

POST   /api/register-donor   register a donor
GET    /api/donors           list donors, newest first, optional filters
DELETE /api/donor/{phone}    remove a donor (idempotent)
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field

from donoralert.api.deps import get_donor_repository
from donoralert.core.exceptions import DuplicateAddressError, StorageError, ValidationError
from donoralert.db.repositories import DonorRepository
from donoralert.registry.filters import resolve_filter
from donoralert.registry.intake import register_donor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["donors"])


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class RegisterDonorBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    area: str | None = None
    phone: str | None = None
    blood_group: str | None = Field(default=None, alias="bloodGroup")


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.post("/register-donor", status_code=201, summary="Register a blood donor")
def register(body: RegisterDonorBody, repository: DonorRepository = Depends(get_donor_repository)):
    try:
        register_donor(
            repository,
            name=body.name,
            area=body.area,
            phone=body.phone,
            blood_group=body.blood_group,
        )
    except (ValidationError, DuplicateAddressError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except StorageError as exc:
        logger.error("Registration error: %s", exc)
        raise HTTPException(status_code=500, detail="Internal server error") from exc
    return {"message": "Donor registered successfully"}


@router.get("/donors", summary="List donors, newest first")
def list_donors(
    area: str | None = Query(default=None),
    blood_group: str | None = Query(default=None, alias="bloodGroup"),
    repository: DonorRepository = Depends(get_donor_repository),
):
    try:
        donors = repository.find(resolve_filter(area, blood_group), newest_first=True)
    except StorageError as exc:
        logger.error("Get donors error: %s", exc)
        raise HTTPException(status_code=500, detail="Internal server error") from exc
    return [donor.to_dict() for donor in donors]


@router.delete("/donor/{phone}", summary="Remove a donor by phone number")
def delete_donor(phone: str, repository: DonorRepository = Depends(get_donor_repository)):
    try:
        repository.delete_by_phone(phone)
    except StorageError as exc:
        logger.error("Delete donor error: %s", exc)
        raise HTTPException(status_code=500, detail="Internal server error") from exc
    return {"message": "Donor deleted successfully"}
