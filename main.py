"""
Pony Inbox - Main Entry Point
Admin console API for Telegram, Facebook, TikTok and Viber conversations
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from contextlib import asynccontextmanager
import logging

# Import configuration
from app.config import settings

# Import API routers
from app.api import auth, inbox

# Import services
from app.services.inbox_service import get_inbox_registry

# Initialize logger
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


# Lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Mount every platform inbox (initial load + unread polling) for the app's lifetime"""
    logger.info("Starting Pony Inbox...")

    if not settings.is_supabase_configured:
        logger.warning("Supabase not configured. Conversation lists will stay empty.")

    registry = get_inbox_registry()
    await registry.mount_all()

    logger.info(f"Application startup complete (platforms: {', '.join(registry.inboxes)})")
    yield

    # Shutdown
    await registry.unmount_all()
    logger.info("Application shutdown")


# Create FastAPI application
app = FastAPI(
    title="Pony Inbox API",
    description="""
## Pony Chat Admin

Single inbox for Telegram, Facebook Messenger, TikTok and Viber conversations.
Messages are read from Supabase; replies and unread counts go through the backend relay.
""",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["*"],
)

# Include routers
app.include_router(auth.router)  # Login / logout (/auth/*)
app.include_router(inbox.router)  # Platform inboxes (/inbox/*)


# Custom OpenAPI schema with bearer auth
def custom_openapi():
    """Generate OpenAPI schema with the Supabase bearer scheme"""
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title="Pony Inbox API",
        version="1.0.0",
        description=app.description,
        routes=app.routes,
    )

    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": "Supabase access token obtained from /auth/login"
        }
    }
    openapi_schema["security"] = [{"BearerAuth": []}]

    openapi_schema["tags"] = [
        {"name": "health", "description": "Health check"},
        {"name": "auth", "description": "Admin login and logout"},
        {"name": "inbox", "description": "Per-platform conversation lists, threads and replies"},
    ]

    app.openapi_schema = openapi_schema
    return app.openapi_schema

app.openapi = custom_openapi


# Root endpoint
@app.get("/", tags=["health"], summary="API Health Check")
def root():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "message": "Pony Inbox API",
        "version": "1.0.0",
        "platforms": settings.ENABLED_PLATFORMS,
        "docs": {
            "swagger_ui": "/docs",
            "redoc": "/redoc",
            "openapi_json": "/openapi.json"
        }
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
