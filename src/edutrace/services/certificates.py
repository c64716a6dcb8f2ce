"""Certificate issuing and public verification."""

from typing import Any, List, Mapping, Optional, Union

from edutrace.clients.data_service import DataServiceClient
from edutrace.schemas.certificates import (
    Certificate,
    CertificateCreate,
    CertificateFilters,
)
from edutrace.validators import parse_request, validate_slug, validate_uuid


class CertificateService:
    """Service for user certificates."""

    def __init__(self, client: DataServiceClient):
        self.client = client

    async def list_certificates(
        self,
        user_id: str,
        filters: Optional[Union[CertificateFilters, Mapping[str, Any]]] = None,
    ) -> List[Certificate]:
        """List a user's certificates, newest first."""
        user_id = validate_uuid(user_id, "user_id")
        criteria = parse_request(CertificateFilters, filters or {})

        query = (
            self.client.table("certificates")
            .select("*, roadmap:roadmaps(*)")
            .eq("user_id", user_id)
        )
        if criteria.certificate_type:
            query = query.eq("certificate_type", criteria.certificate_type)
        if criteria.is_public is not None:
            query = query.eq("is_public", criteria.is_public)
        if criteria.roadmap_id:
            query = query.eq("roadmap_id", criteria.roadmap_id)

        rows = await query.order("issued_date", desc=True).all()
        return [Certificate.model_validate(row) for row in rows]

    async def create_certificate(
        self, user_id: str, request: Union[CertificateCreate, Mapping[str, Any]]
    ) -> Certificate:
        user_id = validate_uuid(user_id, "user_id")
        certificate = parse_request(CertificateCreate, request)

        row = await (
            self.client.table("certificates")
            .insert(
                {
                    "user_id": user_id,
                    "roadmap_id": certificate.roadmap_id,
                    "certificate_type": certificate.certificate_type,
                    "title": certificate.title,
                    "description": certificate.description,
                    "metadata": certificate.metadata,
                }
            )
            .select()
            .one()
        )
        return Certificate.model_validate(row)

    async def verify_certificate(self, verification_code: str) -> Optional[Certificate]:
        """Look up a public certificate by its verification code."""
        validate_slug(verification_code, "verification_code")

        row = await (
            self.client.table("certificates")
            .select("*, roadmap:roadmaps(*), profile:profiles(full_name, email)")
            .eq("verification_code", verification_code)
            .eq("is_public", True)
            .one_or_none()
        )
        return Certificate.model_validate(row) if row else None
