"""
FastAPI Application Entry Point
"""
import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from leaddesk import __version__
from leaddesk.api.v1.routes import api_router
from leaddesk.core.config import ConfigManager, get_settings
from leaddesk.core.container import build_container
from leaddesk.domain.interfaces.lead_store import LeadStoreError

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan - startup and shutdown events.
    
    Startup:
    - Validates provider configuration
    - Builds the console container (lead store, recovery slot, auditor)
    - Loads the first lead snapshot
    
    Shutdown:
    - Closes the auditor client and Redis connection
    """
    # ========================
    # STARTUP
    # ========================
    logger.info("Starting LeadDesk console...")
    
    strict_validation = settings.environment == "production"
    
    try:
        from leaddesk.core.validation import validate_providers_on_startup
        validate_providers_on_startup(
            strict=strict_validation,
            lead_store_backend=settings.lead_store_backend,
        )
    except RuntimeError as e:
        if strict_validation:
            logger.error(f"Startup failed: {e}")
            raise
        logger.warning(f"Configuration warnings (non-fatal in {settings.environment}): {e}")
    
    container = await build_container(settings, ConfigManager(env=settings.environment))
    app.state.container = container
    
    try:
        snapshot = await container.collection.refresh()
        logger.info(f"Loaded {len(snapshot.leads)} leads")
    except LeadStoreError as e:
        logger.error(f"Initial lead fetch failed, starting with an empty snapshot: {e}")
    
    logger.info("LeadDesk console started successfully")
    
    yield  # Application is running
    
    # ========================
    # SHUTDOWN
    # ========================
    logger.info("Shutting down LeadDesk console...")
    
    try:
        await container.shutdown()
    except Exception as e:
        logger.error(f"Error during shutdown: {e}")
    
    logger.info("LeadDesk console shutdown complete")


app = FastAPI(
    title="LeadDesk",
    description="Lead management and call-outcome console",
    version=__version__,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routes
app.include_router(api_router, prefix=settings.api_prefix)


@app.get("/")
async def root():
    return {"message": "LeadDesk API", "status": "running"}


@app.get("/health")
async def health_check(request: Request):
    """
    Health check endpoint.
    
    Returns the lead store in use, the snapshot revision and how many
    agents have a call in progress.
    """
    health = {"status": "healthy"}
    
    container = getattr(request.app.state, "container", None)
    if container is None:
        health["status"] = "starting"
        return health
    
    health["lead_store"] = container.store.name
    health["revision"] = container.collection.revision
    health["active_sessions"] = container.registry.active_count()
    return health


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
