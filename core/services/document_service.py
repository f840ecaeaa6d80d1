# =============================================================================
# core/services/document_service.py - Business Documents
# =============================================================================
# Licences, certificates and headshots uploaded during Phase 1. Files are
# uploaded to storage by the portal; this service records them and handles
# admin verification.
# =============================================================================

import logging
from typing import Any

from lib.supabase_client import SupabaseClient
from lib.utils import compact, utc_now_iso
from core.models.business import DocumentStatus
from app.exceptions import DatabaseError, InvalidRequestError, NotFoundError

logger = logging.getLogger(__name__)

TABLE = "business_documents"


class DocumentService:
    """Service for business document records."""

    @staticmethod
    def list_documents(
        business_id: str | None = None,
        verification_status: DocumentStatus | None = None,
    ) -> list[dict[str, Any]]:
        """Documents newest first, optionally scoped to a business or status."""
        filters: dict[str, Any] = {}
        if business_id:
            filters["business_id"] = business_id
        if verification_status:
            filters["verification_status"] = verification_status.value

        columns = "*" if business_id else "*, business_profiles(id, business_name)"
        return SupabaseClient.fetch_many(
            TABLE,
            filters=filters,
            columns=columns,
            order_by="created_at",
            descending=True,
        )

    @staticmethod
    def uploaded_types(business_id: str) -> set[str]:
        rows = SupabaseClient.fetch_many(TABLE, filters={"business_id": business_id}, columns="document_type")
        return {row["document_type"] for row in rows if row.get("document_type")}

    @staticmethod
    def create_document(
        business_id: str,
        document_type: str,
        document_name: str,
        file_url: str,
        file_size_bytes: int | None = None,
    ) -> dict[str, Any]:
        """
        Record an uploaded document as pending review.

        Raises:
            DatabaseError: If the insert fails
        """
        client = SupabaseClient.get_client()
        data = compact({
            "business_id": business_id,
            "document_type": document_type,
            "document_name": document_name,
            "file_url": file_url,
            "file_size_bytes": file_size_bytes,
            "verification_status": DocumentStatus.PENDING.value,
        })

        try:
            response = client.table(TABLE).insert(data).execute()
        except Exception as e:
            logger.error(f"Failed to save document for business {business_id}: {e}")
            raise DatabaseError("save document", str(e))

        if not response.data:
            raise DatabaseError("save document", "Insert returned no data")

        document = response.data[0]
        logger.info(f"Recorded {document_type} document {document['id']} for business {business_id}")
        return document

    @staticmethod
    def review_document(
        document_id: str,
        status: DocumentStatus,
        admin_user_id: str,
        verification_notes: str | None = None,
        rejection_reason: str | None = None,
    ) -> dict[str, Any]:
        """
        Verify or reject a document.

        Raises:
            InvalidRequestError: Rejection without a reason, or status pending
            NotFoundError: If the document doesn't exist
        """
        if status == DocumentStatus.PENDING:
            raise InvalidRequestError("A review must verify or reject the document")
        if status == DocumentStatus.REJECTED and not rejection_reason:
            raise InvalidRequestError("rejection_reason is required when rejecting a document")

        updates = {
            "verification_status": status.value,
            "verification_notes": verification_notes,
            "rejection_reason": rejection_reason if status == DocumentStatus.REJECTED else None,
            "verified_by": admin_user_id,
            "verified_at": utc_now_iso(),
        }

        client = SupabaseClient.get_client()
        try:
            response = client.table(TABLE).update(updates).eq("id", document_id).execute()
        except Exception as e:
            logger.error(f"Failed to review document {document_id}: {e}")
            raise DatabaseError("update document", str(e))

        if not response.data:
            raise NotFoundError("document", document_id)

        logger.info(f"Document {document_id} marked {status.value} by {admin_user_id}")
        return response.data[0]
