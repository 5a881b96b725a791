"""
SecGate - FastAPI Main Application
"""
import logging
import sys
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from secgate.config import settings
from secgate.db.database import init_db, close_db
from secgate.api.v1 import gate, security_runs, drop_rules, account_pools

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler"""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    await init_db()

    # Executors are registered by the embedding deployment; until then
    # every gate run reports an execution error and blocks.
    if not hasattr(app.state, "template_executor"):
        app.state.template_executor = None
    if not hasattr(app.state, "workflow_executor"):
        app.state.workflow_executor = None

    yield

    logger.info("Shutting down...")
    await close_db()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="API security regression gate for CI/CD pipelines",
    version=settings.APP_VERSION,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(gate.router, prefix="/api/v1/run", tags=["Gate"])
app.include_router(security_runs.router, prefix="/api/v1/security-runs", tags=["Security Runs"])
app.include_router(drop_rules.router, prefix="/api/v1/drop-rules", tags=["Drop Rules"])
app.include_router(account_pools.router, prefix="/api/v1/account-pools", tags=["Account Pools"])


@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "secgate.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
