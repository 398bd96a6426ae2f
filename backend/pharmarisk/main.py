import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pharmarisk import __version__
from pharmarisk.api.router import api_router
from pharmarisk.core import logging as _logging  # noqa: F401  Initialize logging

logger = logging.getLogger(__name__)

app = FastAPI(
    title="PharmaRisk API",
    description="Rule-based pharmacogenomic risk assessment from VCF variant files",
    version=__version__,
)

# CORS Configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    return {"status": "ok", "service": "PharmaRisk"}
