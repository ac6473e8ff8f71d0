"""Route collaborators.

Each collaborator owns the endpoints of one resource and is mounted under its
own path prefix.
"""

from typing import NamedTuple

from fastapi import APIRouter


class RouteCollaborator(NamedTuple):
    name: str
    prefix: str
    router: APIRouter


def default_collaborators() -> list[RouteCollaborator]:
    """Reservations, tables and notifications, in mount order."""
    from reservation_api.api import notifications, reservations, tables

    return [
        RouteCollaborator("reservations", "/api/reservations", reservations.router),
        RouteCollaborator("tables", "/api/tables", tables.router),
        RouteCollaborator("notifications", "/api/notifications", notifications.router),
    ]
