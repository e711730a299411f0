from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
import logging
from sqlalchemy import text
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from newsfeed.config import settings
from newsfeed.api import bookmarks, comments, communities, notifications, posts, reactions, search, share, users
from newsfeed.db.session import AsyncSessionLocal, close_db, init_db
from newsfeed.exceptions import NewsfeedError
from newsfeed.services.auth_service import close_auth_client
from newsfeed.utils.rate_limit import limiter

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events"""
    logger.info("Starting up...")
    Path(settings.MEDIA_DIR).mkdir(parents=True, exist_ok=True)

    try:
        await init_db()
    except Exception as e:
        logger.error(f"Error creating database tables: {e}")

    yield

    logger.info("Shutting down...")
    await close_auth_client()
    await close_db()

# Create FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="Posts, comments, reactions, communities and notifications for a social network",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan
)

# Rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(NewsfeedError)
async def newsfeed_error_handler(request: Request, exc: NewsfeedError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

# Uploaded media
app.mount("/media", StaticFiles(directory=settings.MEDIA_DIR, check_dir=False), name="media")

# Include routers
prefix = settings.API_V1_PREFIX
app.include_router(posts.router, prefix=f"{prefix}/posts", tags=["Posts"])
app.include_router(comments.router, prefix=f"{prefix}/comments", tags=["Comments"])
app.include_router(reactions.router, prefix=f"{prefix}/reactions", tags=["Reactions"])
app.include_router(bookmarks.router, prefix=f"{prefix}/bookmarks", tags=["Bookmarks"])
app.include_router(share.router, prefix=f"{prefix}/share", tags=["Share"])
app.include_router(users.router, prefix=f"{prefix}/users", tags=["Users"])
app.include_router(communities.router, prefix=f"{prefix}/communities", tags=["Communities"])
app.include_router(search.router, prefix=f"{prefix}/search", tags=["Search"])
app.include_router(notifications.router, prefix=f"{prefix}/notifications", tags=["Notifications"])

@app.get("/")
async def root():
    """Root endpoint with API information"""
    return {
        "message": f"Welcome to {settings.PROJECT_NAME}",
        "version": settings.VERSION,
        "docs": "/api/docs",
    }

@app.get("/health")
@limiter.limit("10/minute")
async def health_check(request: Request):
    """Health check endpoint"""
    database = "connected"
    try:
        async with AsyncSessionLocal() as db:
            await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Health check database error: {e}")
        database = "disconnected"

    return {
        "status": "healthy" if database == "connected" else "degraded",
        "database": database,
        "timestamp": datetime.utcnow().isoformat()
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "newsfeed.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info"
    )
