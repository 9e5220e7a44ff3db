import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlmodel import Session

from app.config import ADMIN_EMAIL, ADMIN_PASSWORD, LOG_LEVEL
from app.database import create_db_and_tables, engine
from app.errors import Conflict, Forbidden, LeagueError, NotFound, Unauthorized, ValidationFailure
from app.models import UserRole
from app.services.auth import create_user, get_user_by_email

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

ERROR_STATUS = {
    Unauthorized: 401,
    Forbidden: 403,
    NotFound: 404,
    Conflict: 409,
    ValidationFailure: 400,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup: Create database tables and make sure an admin can log in
    create_db_and_tables()
    with Session(engine) as db:
        if not get_user_by_email(db, ADMIN_EMAIL):
            create_user(db, ADMIN_EMAIL, ADMIN_PASSWORD, "Administrator", role=UserRole.ADMIN)
            logger.info("Seeded admin account %s", ADMIN_EMAIL)
    yield


# Initialize FastAPI app
app = FastAPI(
    title="Sports League Registration",
    description="Sign up, create leagues and teams, and manage team membership",
    version="1.0.0",
    lifespan=lifespan
)


@app.exception_handler(LeagueError)
async def league_error_handler(request: Request, exc: LeagueError):
    status_code = next(
        (code for error_cls, code in ERROR_STATUS.items() if isinstance(exc, error_cls)),
        400
    )
    return JSONResponse(
        status_code=status_code,
        content={"error": exc.kind, "detail": exc.detail}
    )


# Include routers
from app.routers import auth, leagues, teams, users

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(leagues.router)
app.include_router(leagues.public_router)
app.include_router(teams.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
