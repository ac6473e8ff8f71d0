"""ASGI entrypoint for servers that import the app, e.g. ``uvicorn reservation_api.asgi:app``.

Without the gateway's own listener a failed data-store connection ends the
process through ``terminate_process``.
"""

from reservation_api.bootstrap import create_app

app = create_app()
