"""FastAPI application factory."""

from fastapi import FastAPI

from nutritrack.api.users import router as users_router
from nutritrack.app_logging import configure_logging
from nutritrack.containers import AppContainer, build_container


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    app = FastAPI(title="NutriTrack")
    app.state.container = container
    app.include_router(users_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app


def app_factory() -> FastAPI:
    """Build the app from environment settings.

    Serve with ``uvicorn nutritrack.api.app:app_factory --factory``.
    """
    return create_app(build_container())
