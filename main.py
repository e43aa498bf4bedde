"""
Onboarding Engine API Server Entry Point

Run locally:
  uvicorn main:app --host 0.0.0.0 --port $PORT
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from onboarding import __version__
from onboarding.api import router as onboarding_router
from onboarding.config import configure_logging

configure_logging()
logger = logging.getLogger(__name__)

# ============================================
# App Configuration
# ============================================
app = FastAPI(
    title="Progressive Profile Onboarding API",
    description="Conversational, resumable profile onboarding",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(onboarding_router)
logger.info(f"Onboarding endpoints registered ({__version__})")


@app.get("/")
def root():
    return {"service": "onboarding", "version": __version__, "docs": "/docs"}


# For local development
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
