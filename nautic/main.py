"""FastAPI application setup for the Nautic conditions service."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from nautic.api import router as api_router
from nautic.config import settings

app = FastAPI(title="Nautic Conditions API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(api_router, prefix="/api")
