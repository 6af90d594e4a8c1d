from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, File, Header, Request, Response, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import field_validator
from pymongo.database import Database

import settings
from auth import authenticate, ensure_admin, issue_token, verify_admin
from database import close_client, ensure_indexes, get_database, list_collections
from exceptions import PortfolioError, StorageFailure, Unauthorized, ValidationFailure
from logger import get_logger, setup_logging
from portfolio import PortfolioService
from schemas import AdminIdentity, AnalyticsSummary, CamelModel, Portfolio, PortfolioUpdate
from storage import BlobStore
from tracking import client_ip

logger = get_logger(__name__)


class LoginRequest(CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None


class LoginResponse(CamelModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"


class TrackRequest(CamelModel):
    page: str
    project_id: Optional[str] = None
    visitor_id: Optional[str] = None
    session_id: Optional[str] = None

    @field_validator("project_id", "visitor_id", "session_id", mode="before")
    @classmethod
    def drop_malformed(cls, value):
        # a bad optional field never costs the event
        return value if isinstance(value, str) else None


class UploadResponse(CamelModel):
    url: str


# ============
# Dependencies
# ============

def get_db(request: Request) -> Database:
    return request.app.state.db


def get_service(request: Request) -> PortfolioService:
    return request.app.state.service


def get_current_admin(request: Request, authorization: Optional[str] = Header(None)) -> AdminIdentity:
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1]
    else:
        token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    admin = verify_admin(request.app.state.db, token)
    if admin is None:
        raise Unauthorized()
    return admin


# ==================
# FastAPI app config
# ==================

def create_app(database: Optional[Database] = None, upload_dir: Optional[str] = None) -> FastAPI:
    owns_client = database is None
    db = get_database() if owns_client else database
    upload_dir = upload_dir or settings.UPLOAD_DIR

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging()
        try:
            ensure_indexes(db)
            ensure_admin(db, settings.ADMIN_EMAIL, settings.ADMIN_PASSWORD)
        except StorageFailure as e:
            logger.error(f"Database setup failed, continuing without it: {e}")
        yield
        if owns_client:
            close_client()

    app = FastAPI(title="Portfolio API", lifespan=lifespan)
    app.state.db = db
    app.state.service = PortfolioService(db)
    app.state.blobs = BlobStore(upload_dir, settings.UPLOAD_URL_PREFIX, settings.MAX_UPLOAD_BYTES)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.mount(settings.UPLOAD_URL_PREFIX, StaticFiles(directory=upload_dir, check_dir=False), name="uploads")

    # Error handlers
    @app.exception_handler(PortfolioError)
    async def portfolio_error_handler(request: Request, exc: PortfolioError):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.to_dict()}")
            message = "Server error"
        else:
            logger.warning(f"{request.method} {request.url.path} rejected: {exc}")
            message = exc.message
        return JSONResponse(status_code=exc.status_code, content={"success": False, "error": message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"{request.method} {request.url.path} invalid payload: {exc.errors()}")
        return JSONResponse(status_code=400, content={"success": False, "error": "Invalid request"})

    # ======
    # Routes
    # ======
    @app.get("/")
    def root():
        return {"status": "ok", "service": "portfolio-api"}

    @app.get("/test")
    def test_database(db: Database = Depends(get_db)):
        try:
            collections = list_collections(db)
        except StorageFailure:
            return {"backend": "running", "database": "not-available", "collections": []}
        return {"backend": "running", "database": "connected", "collections": collections[:10]}

    # Auth
    @app.post("/api/auth/login", response_model=LoginResponse)
    def login(data: LoginRequest, response: Response, db: Database = Depends(get_db)):
        if not data.email or not data.password:
            raise ValidationFailure("Email and password required")
        admin = authenticate(db, data.email, data.password)
        if admin is None:
            raise Unauthorized("Invalid credentials")
        token = issue_token(admin)
        response.set_cookie(
            settings.AUTH_COOKIE_NAME,
            token,
            httponly=True,
            secure=settings.COOKIE_SECURE,
            samesite="strict",
            max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        )
        return LoginResponse(access_token=token)

    @app.post("/api/auth/logout")
    def logout(response: Response):
        response.delete_cookie(settings.AUTH_COOKIE_NAME)
        return {"success": True}

    # Portfolio
    @app.get("/api/portfolio", response_model=Portfolio)
    def public_portfolio(service: PortfolioService = Depends(get_service)):
        return service.get_public_portfolio()

    @app.get("/api/admin/portfolio", response_model=Portfolio)
    def admin_portfolio(
        service: PortfolioService = Depends(get_service),
        _: AdminIdentity = Depends(get_current_admin),
    ):
        return service.get_admin_portfolio()

    @app.put("/api/portfolio")
    def update_portfolio(
        update: PortfolioUpdate,
        service: PortfolioService = Depends(get_service),
        _: AdminIdentity = Depends(get_current_admin),
    ):
        service.apply_update(update)
        return {"success": True}

    @app.delete("/api/projects/{project_id}")
    def delete_project(
        project_id: str,
        service: PortfolioService = Depends(get_service),
        _: AdminIdentity = Depends(get_current_admin),
    ):
        service.delete_project(project_id)
        return {"success": True}

    # Analytics
    @app.post("/api/analytics/track")
    async def track(request: Request, service: PortfolioService = Depends(get_service)):
        # Tracking never fails the calling page
        try:
            payload = TrackRequest.model_validate(await request.json())
        except ValueError as e:
            logger.warning(f"Ignoring malformed track payload: {e}")
            return {"success": True}

        ip_address = client_ip(
            request.headers.get("x-forwarded-for"),
            request.headers.get("x-real-ip"),
            request.client.host if request.client else None,
        )
        await run_in_threadpool(
            service.track,
            payload.page,
            payload.visitor_id,
            payload.session_id,
            project_id=payload.project_id,
            ip_address=ip_address,
            user_agent=request.headers.get("user-agent"),
        )
        return {"success": True}

    @app.get("/api/analytics", response_model=AnalyticsSummary)
    def analytics_summary(
        service: PortfolioService = Depends(get_service),
        _: AdminIdentity = Depends(get_current_admin),
    ):
        return service.analytics_summary()

    # Uploads
    @app.post("/api/upload", response_model=UploadResponse)
    def upload(
        request: Request,
        file: UploadFile = File(...),
        _: AdminIdentity = Depends(get_current_admin),
    ):
        blobs = request.app.state.blobs
        url = blobs.store(blobs.read(file.file), file.content_type)
        return UploadResponse(url=url)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
