# main.py
import logging
import pathlib
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from checkout import CheckoutError, CheckoutGateway
from config import Settings
from content_filter import check_text
from generation import GenerationError, RoastGenerator
from prompts import Tone, build_prompt
from rate_limit import RATE_LIMIT_MESSAGE, ApiRateLimiter

log = logging.getLogger("roaster")

PUBLIC_DIR = pathlib.Path(__file__).parent / "public"

# ---------------------------
# Errors: every API failure is {"error": "..."} plus a status code
# ---------------------------
class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


async def api_error_handler(request: Request, exc: ApiError):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def validation_error_handler(request: Request, exc: RequestValidationError):
    log.info("rejected request on %s: %s", request.url.path, exc.errors())
    return JSONResponse(status_code=400, content={"error": "Ongeldig verzoek."})

# ---------------------------
# Request / response models
# ---------------------------
class RoastIn(BaseModel):
    target: Optional[str] = None
    tone: Tone = Tone.MILD


class PremiumRoastIn(RoastIn):
    session_id: Optional[str] = None


class RoastOut(BaseModel):
    roast: str
    note: Optional[str] = None


class CheckoutOut(BaseModel):
    url: str


class VerifyOut(BaseModel):
    paid: bool

# ---------------------------
# Shared steps
# ---------------------------
def require_target(req: RoastIn, settings: Settings) -> str:
    if not req.target or not req.target.strip():
        raise ApiError(400, "Geef een target op.")
    if check_text(req.target, settings.FILTER_NORMALIZE_HOMOGLYPHS).blocked:
        raise ApiError(400, "Target geblokkeerd.")
    return req.target


async def generate_checked(request: Request, target: str, tone: Tone, premium: bool,
                           blocked_message: str, failure_message: str) -> RoastOut:
    settings: Settings = request.app.state.settings
    generator: RoastGenerator = request.app.state.generator
    prompt = build_prompt(target, tone, premium=premium)
    try:
        result = await generator.generate(prompt, target, premium=premium)
    except GenerationError:
        raise ApiError(500, failure_message)
    if not result.offline and check_text(result.text, settings.FILTER_NORMALIZE_HOMOGLYPHS).blocked:
        log.warning("generated roast blocked by content filter (premium=%s)", premium)
        raise ApiError(500, blocked_message)
    return RoastOut(roast=result.text, note=result.note)


def site_origin(request: Request) -> str:
    return request.headers.get("origin") or str(request.base_url).rstrip("/")


def success_url_for(request: Request, settings: Settings) -> str:
    url = settings.STRIPE_SUCCESS_URL
    if url.startswith("/"):
        # Stripe only accepts absolute redirect URLs
        return site_origin(request) + url
    return url


def client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"

# ---------------------------
# Routes
# ---------------------------
async def health():
    return {"status": "ok"}


async def roast(req: RoastIn, request: Request) -> RoastOut:
    settings: Settings = request.app.state.settings
    target = require_target(req, settings)
    return await generate_checked(
        request, target, req.tone, premium=False,
        blocked_message="Gegenereerde tekst werd geblokkeerd door veiligheidssysteem.",
        failure_message="Er ging iets mis bij het genereren.",
    )


async def create_checkout_session(request: Request) -> CheckoutOut:
    settings: Settings = request.app.state.settings
    gateway: CheckoutGateway = request.app.state.gateway
    if not gateway.configured:
        raise ApiError(500, "Stripe niet geconfigureerd op deze server.")
    try:
        url = await gateway.create_session(
            success_url=success_url_for(request, settings),
            cancel_url=site_origin(request) + "/",
        )
    except CheckoutError:
        raise ApiError(500, "Kon geen checkout sessie aanmaken.")
    return CheckoutOut(url=url)


async def verify_session(request: Request, session_id: Optional[str] = None) -> VerifyOut:
    gateway: CheckoutGateway = request.app.state.gateway
    if not gateway.configured:
        raise ApiError(500, "Stripe niet geconfigureerd.")
    if not session_id:
        raise ApiError(400, "Geen session_id meegegeven.")
    try:
        paid = await gateway.is_paid(session_id)
    except CheckoutError:
        raise ApiError(500, "Kon sessie niet verifiëren.")
    return VerifyOut(paid=paid)


async def premium_roast(req: PremiumRoastIn, request: Request) -> RoastOut:
    settings: Settings = request.app.state.settings
    gateway: CheckoutGateway = request.app.state.gateway
    target = require_target(req, settings)

    if gateway.configured:
        if not req.session_id:
            raise ApiError(400, "Ontbrekende session_id voor premium roast.")
        try:
            paid = await gateway.is_paid(req.session_id)
        except CheckoutError:
            raise ApiError(500, "Fout bij premium generatie.")
        if not paid:
            raise ApiError(402, "Betaling niet bevestigd.")
    elif settings.PREMIUM_DEMO_MODE:
        log.warning("Stripe not configured, premium roast served without payment (PREMIUM_DEMO_MODE)")
    else:
        raise ApiError(500, "Stripe niet geconfigureerd op deze server.")

    return await generate_checked(
        request, target, req.tone, premium=True,
        blocked_message="Gegenereerde tekst werd geblokkeerd.",
        failure_message="Fout bij premium generatie.",
    )


async def success_page():
    # payment is verified afterwards by the page itself via /api/verify-session
    return FileResponse(PUBLIC_DIR / "success.html")

# ---------------------------
# App factory
# ---------------------------
def configure_logging(settings: Settings) -> None:
    # no-op when the root logger already has handlers
    logging.basicConfig(
        level=getattr(logging, (settings.LOG_LEVEL or "INFO").upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def create_app(settings: Optional[Settings] = None,
               generator: Optional[RoastGenerator] = None,
               gateway: Optional[CheckoutGateway] = None,
               limiter: Optional[ApiRateLimiter] = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings)
    app = FastAPI(title="AI Roaster API (free + premium roasts)")

    app.state.settings = settings
    app.state.generator = generator or RoastGenerator(
        settings.OPENAI_API_KEY, settings.OPENAI_MODEL, base_url=settings.OPENAI_BASE_URL
    )
    app.state.gateway = gateway or CheckoutGateway(settings.STRIPE_SECRET_KEY)
    app.state.limiter = limiter or ApiRateLimiter()

    log.info("APP_ENV: %s", settings.APP_ENV)
    log.info("OpenAI key set: %s (model %s)", "Yes" if settings.generation_enabled else "No", settings.OPENAI_MODEL)
    log.info("Stripe key set: %s", "Yes" if settings.payments_enabled else "No")
    if not settings.payments_enabled:
        log.warning("Stripe secret not set: checkout is disabled, premium roasts %s",
                    "run in DEMO MODE" if settings.PREMIUM_DEMO_MODE else "are refused")

    @app.middleware("http")
    async def rate_limit_api(request: Request, call_next):
        path = request.url.path or ""
        if path.startswith("/api/"):
            limiter: ApiRateLimiter = request.app.state.limiter
            key = client_key(request)
            if not limiter.hit(key):
                log.info("rate limit exceeded for %s on %s", key, path)
                return JSONResponse(
                    status_code=429,
                    content={"error": RATE_LIMIT_MESSAGE},
                    headers={"Retry-After": str(limiter.retry_after(key))},
                )
        return await call_next(request)

    # outermost, so 429s carry CORS headers as well
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.add_api_route("/health", health, methods=["GET"])
    app.add_api_route("/api/roast", roast, methods=["POST"], response_model=RoastOut, response_model_exclude_none=True)
    app.add_api_route("/api/create-checkout-session", create_checkout_session, methods=["POST"], response_model=CheckoutOut)
    app.add_api_route("/api/verify-session", verify_session, methods=["GET"], response_model=VerifyOut)
    app.add_api_route("/api/premium-roast", premium_roast, methods=["POST"], response_model=RoastOut, response_model_exclude_none=True)
    app.add_api_route("/success", success_page, methods=["GET"])

    # static client last so the routes above take precedence
    app.mount("/", StaticFiles(directory=PUBLIC_DIR, html=True), name="public")
    return app


app = create_app()


def run():
    settings: Settings = app.state.settings
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)

# ---------------------------
# If you want to run locally:
# uvicorn main:app --reload
# ---------------------------
if __name__ == "__main__":
    run()
