"""Reservation API gateway.

Run with ``python -m reservation_api`` or point an ASGI server at
``reservation_api.asgi:app``.
"""

__version__ = "1.0.0"
