"""Restaurant tables routes, mounted under /api/tables."""

from reservation_api.api.documents import build_document_router

router = build_document_router("tables", "table")
