"""
Leakwatch - Revenue Leak Scanner
Main application entry point
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
import os

from app.core.config import settings
from app.api import api_router


logger = logging.getLogger("leakwatch")

TEMPLATES_DIR = os.path.join(os.path.dirname(__file__), "templates")


def configure_logging():
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s | %(levelname)-8s | %(name)s - %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events
    """
    configure_logging()
    logger.info("🔍 Starting Leakwatch - Revenue Leak Scanner...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Debug mode: {settings.debug}")
    if not settings.shopify_api_secret:
        logger.warning("⚠️ SHOPIFY_API_SECRET is not set - session tokens cannot be verified")

    yield

    logger.info("👋 Shutting down Leakwatch...")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    description="Find where a Shopify store is leaking revenue",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(api_router, prefix="/api/v1")


def _read_template(name: str):
    path = os.path.join(TEMPLATES_DIR, name)
    if not os.path.exists(path):
        return None
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


# ==================== Dashboard Routes ====================

@app.get("/dashboard", response_class=HTMLResponse)
async def dashboard(request: Request):
    """
    Serve the embedded dashboard page.

    Usage: opened by Shopify admin as /dashboard?shop=my-store.myshopify.com&host=...
    """
    html_content = _read_template("dashboard.html")
    if html_content is not None:
        html_content = html_content.replace("{{ api_key }}", settings.shopify_api_key)
        return HTMLResponse(content=html_content)

    return HTMLResponse(content="""
        <html>
            <head><title>Leakwatch Dashboard</title></head>
            <body>
                <h1>Dashboard template not found</h1>
                <p>Please ensure templates/dashboard.html exists.</p>
            </body>
        </html>
    """, status_code=500)


# ==================== Core Endpoints ====================

@app.get("/")
async def root(request: Request):
    """
    Root endpoint - browsers get the dashboard, API clients get service info.
    """
    accept_header = request.headers.get("accept", "")

    if "text/html" in accept_header:
        return await dashboard(request)

    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": "1.0.0",
        "environment": settings.environment,
        "docs": "/docs",
        "dashboard": "/dashboard"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


# ==================== Run Server ====================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
