"""FastAPI application entry point."""
import logging
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from studygroup.config import settings
from studygroup.database import Base, SessionLocal, engine

# Import routers
from studygroup.routers import activities, auth, groups, membership_requests, notices, users
from studygroup.services import user_service

# Import all models so Base.metadata knows about them
from studygroup.models.user import User, AllowedEmail            # noqa: F401
from studygroup.models.group import Group, Membership           # noqa: F401
from studygroup.models.membership_request import MembershipRequest  # noqa: F401
from studygroup.models.notice import Notice                     # noqa: F401
from studygroup.models.activity_log import ActivityLog          # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Study Group Backend",
    description="Study groups with whitelist registration, join requests, notices and an activity log",
    version="0.1.0",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(groups.router, prefix="/api/groups", tags=["Groups"])
app.include_router(membership_requests.router, prefix="/api/groups", tags=["MembershipRequests"])
app.include_router(notices.router, prefix="/api/groups", tags=["Notices"])
app.include_router(activities.router, prefix="/api", tags=["Activities"])


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "detail": {
                "code": "VALIDATION_FAILED",
                "message": "Invalid request payload",
                "errors": jsonable_encoder(exc.errors()),
            }
        },
    )


@app.exception_handler(SQLAlchemyError)
async def store_exception_handler(request: Request, exc: SQLAlchemyError):
    logger.exception("Unexpected store error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": {"code": "INTERNAL", "message": "Internal server error"}},
    )


@app.on_event("startup")
def on_startup():
    """Create tables (SQLite dev mode) and seed the email whitelist."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
    if settings.whitelisted_emails:
        db = SessionLocal()
        try:
            user_service.seed_whitelist(db, settings.whitelisted_emails)
        finally:
            db.close()


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
