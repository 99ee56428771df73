import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from quickflip.config import get_settings
from quickflip.routers import analysis, listing, marketplace_oauth, pricing
from quickflip.db import create_db_and_tables

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="QuickFlip")

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(analysis.router)
app.include_router(listing.router)
app.include_router(pricing.router)
app.include_router(marketplace_oauth.router)

@app.on_event("startup")
async def on_startup():
    create_db_and_tables()
    missing = get_settings().missing_keys()
    if missing:
        logger.warning("Unconfigured settings: %s", ", ".join(missing))

@app.on_event("shutdown")
async def on_shutdown():
    await analysis.close_openai_clients()

@app.get("/")
def root():
    return {"message": "QuickFlip backend is live"}
