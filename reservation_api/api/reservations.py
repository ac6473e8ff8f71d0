"""Reservations routes, mounted under /api/reservations."""

from reservation_api.api.documents import build_document_router

router = build_document_router("reservations", "reservation")
