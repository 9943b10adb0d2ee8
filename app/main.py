import logging
import os

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi

from app.api.routes.match import router as match_router
from app.api.routes.parse import router as parse_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Resume Match Service",
    description="Resume parsing and weighted candidate/job matching with optional external analysis",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

app.include_router(parse_router)
app.include_router(match_router)

@app.get("/", tags=["health"])
def root():
    return {"service": "resume-match", "status": "running"}

@app.get("/health", tags=["health"])
def health():
    return {"status": "ok"}

def custom_openapi():
    """Generate OpenAPI schema with custom settings."""
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title="Resume Match API",
        version="0.1.0",
        description="Resume parsing and match scoring API",
        routes=app.routes,
    )
    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi
