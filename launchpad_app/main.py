import logging
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from launchpad_app.api.routes import router as api_router
from launchpad_app.auth import (
    COOKIE_NAME,
    create_session,
    delete_session,
    session_user,
    verify_credentials,
)
from launchpad_app.config import Settings, get_settings
from launchpad_app.errors import LaunchpadError
from launchpad_app.services.factory import LaunchFactory
from launchpad_app.services.ledger import PaymentLedger
from launchpad_app.services.venue import InMemoryLiquidityVenue
from launchpad_app.utils.json_safety import SafeJSONResponse

logger = logging.getLogger(__name__)

# ── Routes that require an owner session ──
_OWNER_PATHS = {"/api/factory/fees"}


# ── Request body for login endpoint ──
class LoginRequest(BaseModel):
    username: str
    password: str


def build_factory(settings: Settings) -> LaunchFactory:
    payments = PaymentLedger()
    return LaunchFactory(
        owner=settings.owner_username,
        fee_recipient=settings.platform_fee_recipient,
        payments=payments,
        venue=InMemoryLiquidityVenue(payments, name=settings.venue_name),
        creator_fee_bps=settings.default_creator_fee_bps,
        platform_fee_bps=settings.default_platform_fee_bps,
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()

    app = FastAPI(
        title="Bonding Curve Launchpad",
        default_response_class=SafeJSONResponse,
    )
    app.state.settings = settings
    app.state.factory = build_factory(settings)

    # ── Owner session middleware ──
    @app.middleware("http")
    async def auth_middleware(request: Request, call_next):
        request.state.owner = session_user(request.cookies.get(COOKIE_NAME))

        if request.url.path in _OWNER_PATHS and request.state.owner is None:
            return JSONResponse(
                {"detail": "Not authenticated"},
                status_code=401,
            )

        return await call_next(request)

    # ── Engine rejections → JSON with a stable code ──
    @app.exception_handler(LaunchpadError)
    async def launchpad_error_handler(request: Request, exc: LaunchpadError):
        return JSONResponse(
            {"detail": exc.message, "code": exc.code},
            status_code=exc.status_code,
        )

    # ── CORS (kept for local dev convenience) ──
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=True,
    )

    # ── Auth routes ──
    @app.get("/login")
    async def login_page():
        return {
            "login": "/auth/login",
            "enabled": settings.owner_login_enabled,
        }

    @app.post("/auth/login")
    async def auth_login(data: LoginRequest):
        if not verify_credentials(data.username, data.password, settings):
            return JSONResponse(
                {"detail": "Invalid username or password."},
                status_code=401,
            )
        token = create_session(settings.owner_username, settings)
        resp = JSONResponse({"ok": True})
        resp.set_cookie(
            key=COOKIE_NAME,
            value=token,
            httponly=True,          # not accessible from JavaScript
            samesite="lax",         # CSRF protection
            secure=False,           # set True when behind HTTPS in production
            max_age=settings.session_ttl_seconds,
            path="/",
        )
        return resp

    @app.post("/auth/logout")
    async def auth_logout(request: Request):
        token = request.cookies.get(COOKIE_NAME)
        if token:
            delete_session(token)
        resp = JSONResponse({"ok": True})
        resp.delete_cookie(key=COOKIE_NAME, path="/")
        return resp

    # ── API routes ──
    app.include_router(api_router, prefix="/api")

    return app


app = create_app()


def run():
    import uvicorn

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting launchpad on %s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)
