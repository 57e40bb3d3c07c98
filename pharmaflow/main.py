"""
FastAPI Application Entry Point - PharmaFlow Order Service
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from pharmaflow import __version__
from pharmaflow.config import settings
from pharmaflow.database import init_db
from pharmaflow.api import health, orders, deliveries, returns, products

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables on startup"""
    logger.info(f"Starting {settings.SERVICE_NAME}...")
    init_db()
    logger.info("Database initialized")
    logger.info(f"Event publishing {'enabled' if settings.EVENTS_ENABLED else 'disabled'}: {settings.RABBITMQ_URL}")
    logger.info(f"{settings.SERVICE_NAME} is running on port {settings.SERVICE_PORT}")
    yield
    logger.info(f"Shutting down {settings.SERVICE_NAME}...")


# Create FastAPI application
app = FastAPI(
    title="PharmaFlow Order Service",
    description="Order lifecycle, approval pipeline and inventory reservation engine",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router)
app.include_router(orders.router)
app.include_router(deliveries.router)
app.include_router(returns.router)
app.include_router(products.router)
app.include_router(products.inventory_router)
app.include_router(products.customers_router)

# Prometheus metrics
Instrumentator().instrument(app).expose(app)
