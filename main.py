# main.py

import os
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# ================================================================
# LOGGING (BOOT FIRST)
# ================================================================
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger("political-dna")
logger.info("Political DNA backend boot sequence started")

from config.dna_settings import get_settings
from services.supabase_admin import supabase_status

# ================================================================
# ROUTERS (GUARDED IMPORTS: DO NOT BLOCK SERVER START)
# ================================================================
dna_router = None

try:
    from routers.dna import router as dna_router  # type: ignore
    logger.info("DNA router loaded")
except Exception as e:
    logger.error(f"Failed to load DNA router (startup continues): {e}")

# ================================================================
# FASTAPI APP
# ================================================================
logger.info("Creating FastAPI app")

app = FastAPI(
    title="Political DNA Backend",
    description="Six-axis ideological profiles • Compatibility • Discrepancies • Forecasts",
    version="1.0.0",
)

# ================================================================
# CORS
# ================================================================
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ================================================================
# ROOT / HEALTH
# ================================================================
@app.get("/")
def root():
    settings = get_settings()
    return {
        "message": "Political DNA Engine Online",
        "dna_router_loaded": bool(dna_router),
        "supabase": supabase_status(),
        "evolution_step": settings.evolution_step,
        "party_pivot_sample_size": settings.party_pivot_sample_size,
    }


@app.get("/healthz", include_in_schema=False)
def healthz():
    return {"status": "healthy"}


# ================================================================
# ROUTERS
# ================================================================
if dna_router:
    app.include_router(dna_router)


# ================================================================
# LIFECYCLE
# ================================================================
@app.on_event("startup")
def startup_event():
    logger.info("Political DNA Backend started.")


@app.on_event("shutdown")
def shutdown_event():
    logger.info("Political DNA Backend stopped.")
