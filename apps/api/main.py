"""Thin API launcher.

This is the uvicorn entrypoint. All application logic lives in the memorial package.
Run with: uvicorn main:app --reload

Note: The app instance is created here (not in memorial.app) to avoid import-time
side effects. Tests import create_app without a fully configured environment.
"""

from memorial.app import add_request_id_middleware, create_app

app = create_app()
# Add request-id middleware LAST so it runs FIRST (outermost)
add_request_id_middleware(app)

__all__ = ["app"]
