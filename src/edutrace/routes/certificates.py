"""Certificate endpoints."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query

from edutrace.auth import get_current_user
from edutrace.clients.data_service import DataServiceClient
from edutrace.db.base import get_db
from edutrace.schemas.certificates import (
    Certificate,
    CertificateCreate,
    CertificateFilters,
    CertificateList,
)
from edutrace.services.certificates import CertificateService

router = APIRouter()


@router.get("", response_model=CertificateList)
async def list_certificates(
    certificate_type: Optional[str] = Query(
        None, pattern="^(completion|achievement|badge)$"
    ),
    is_public: Optional[bool] = Query(None),
    roadmap_id: Optional[str] = Query(None),
    db: DataServiceClient = Depends(get_db),
    user_id: UUID = Depends(get_current_user),
) -> CertificateList:
    service = CertificateService(db)
    certificates = await service.list_certificates(
        str(user_id),
        {
            "certificate_type": certificate_type,
            "is_public": is_public,
            "roadmap_id": roadmap_id,
        },
    )
    return CertificateList(items=certificates)


@router.post("", response_model=Certificate, status_code=201)
async def create_certificate(
    payload: CertificateCreate,
    db: DataServiceClient = Depends(get_db),
    user_id: UUID = Depends(get_current_user),
) -> Certificate:
    service = CertificateService(db)
    return await service.create_certificate(str(user_id), payload)


@router.get("/verify/{verification_code}", response_model=Certificate)
async def verify_certificate(
    verification_code: str,
    db: DataServiceClient = Depends(get_db),
) -> Certificate:
    """Public lookup of a shared certificate."""
    service = CertificateService(db)
    certificate = await service.verify_certificate(verification_code)
    if not certificate:
        raise HTTPException(status_code=404, detail="Certificate not found")
    return certificate
