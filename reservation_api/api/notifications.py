"""Notifications routes, mounted under /api/notifications."""

from reservation_api.api.documents import build_document_router

router = build_document_router("notifications", "notification")
