"""
Name: Backend ASGI Entrypoint (infinitynet.main)

Responsibilities:
  - Build the default FastAPI app from environment settings
  - Preserve the import path used by uvicorn (infinitynet.main:app)

Notes/Constraints:
  - Tests use infinitynet.api.main.create_app() with explicit settings instead
  - No business logic here
"""

from infinitynet.api.main import create_app

app = create_app()

__all__ = ["app"]
