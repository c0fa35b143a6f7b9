"""FastAPI application entry point."""

from fastapi import FastAPI

from .. import __version__
from .routes import auth, migrations

app = FastAPI(
    title="Site Easy Migration API",
    description="Trigger a site export and download the resulting archive",
    version=__version__,
)

# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(migrations.router, prefix="/api/migrations", tags=["migrations"])


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
