import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from catalog.config import settings
from catalog.middleware import TimingMiddleware
from catalog.routers import admin_services, blog, gallery, metrics, services

logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Catalog API starting (env=%s)", settings.APP_ENV)
    yield
    # Shutdown
    logger.info("Catalog API shutting down")

app = FastAPI(
    title="Service Catalog API",
    description="Read-only service catalog with batched relation loading",
    version="1.0.0",
    lifespan=lifespan,
)

# Middleware
app.add_middleware(TimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(services.router)
app.include_router(admin_services.router)
app.include_router(blog.router)
app.include_router(gallery.router)
app.include_router(metrics.router)

@app.get("/health")
async def health():
    return {"status": "healthy", "version": "1.0.0"}
