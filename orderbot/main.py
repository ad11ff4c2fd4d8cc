"""
FastAPI Application Entry Point

Restaurant Chat Ordering Bot
Numeric chat commands build an order per anonymous session; checkout
either places the order at once or goes through a payment gateway.

Endpoints:
    - GET /: Chat page
    - POST /chat: Interpret one chat command
    - GET /paystack/callback: Payment gateway callback (alias /payments/callback)
    - GET /health: System health check

Run:
    python -m orderbot.main  (binds API_HOST:API_PORT)

Author: Your Name
Version: 2.0.0
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError

from orderbot.core.config import get_settings, setup_logging
from orderbot.exceptions import GatewayError
from orderbot.interpreter import CommandInterpreter
from orderbot.menu import MENU
from orderbot.schemas import ChatRequest, ChatResponse, ErrorResponse, HealthResponse
from orderbot.services.correlator import ConfirmationOutcome, PaymentCorrelator
from orderbot.services.payment import get_payment_gateway
from orderbot.sessions import SessionStore

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

# Template configuration
templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


# =============================================================================
# DEPENDENCIES
# =============================================================================

@lru_cache()
def get_session_store() -> SessionStore:
    """Process-wide session table."""
    return SessionStore()


@lru_cache()
def get_correlator() -> Optional[PaymentCorrelator]:
    """Payment correlator, or None when payments are disabled."""
    gateway = get_payment_gateway()
    if gateway is None:
        return None
    return PaymentCorrelator(
        store=get_session_store(),
        gateway=gateway,
        callback_base_url=settings.callback_base_url,
        timeout=settings.gateway_timeout_seconds,
    )


@lru_cache()
def get_interpreter() -> CommandInterpreter:
    return CommandInterpreter(
        catalog=MENU,
        correlator=get_correlator(),
        restaurant_name=settings.restaurant_name,
        currency_symbol=settings.currency_symbol,
    )


def _set_session_cookie(response: Response, request: Request, token: str) -> None:
    if request.cookies.get(settings.session_cookie_name) != token:
        response.set_cookie(settings.session_cookie_name, token, httponly=True)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    # Startup
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    gateway = get_payment_gateway()
    logger.info(
        f"✅ Payment Gateway: {gateway.provider_name if gateway else 'disabled'}"
    )
    logger.info(f"✅ Menu: {len(MENU)} items")

    missing = settings.validate_payment_config()
    if missing:
        logger.warning(f"⚠️ Missing payment config: {missing}")

    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    # Shutdown
    logger.info("Shutting down...")
    if gateway is not None:
        await gateway.close()
    logger.info("✅ Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Numeric-command restaurant chat bot. Builds orders per anonymous "
        "session and optionally collects payment through a hosted gateway."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# =============================================================================
# PAGES
# =============================================================================

@app.get("/", response_class=HTMLResponse, tags=["Chat"])
async def chat_page(
    request: Request,
    store: SessionStore = Depends(get_session_store),
) -> HTMLResponse:
    """Serve the chat UI."""
    token, _ = store.resolve(request.cookies.get(settings.session_cookie_name))
    response = templates.TemplateResponse(
        request,
        "index.html",
        {"restaurant_name": settings.restaurant_name},
    )
    _set_session_cookie(response, request, token)
    return response


# =============================================================================
# CHAT API
# =============================================================================

@app.post(
    "/chat",
    response_model=ChatResponse,
    tags=["Chat"],
    summary="Interpret a chat command",
)
async def chat(
    request: Request,
    response: Response,
    store: SessionStore = Depends(get_session_store),
    interpreter: CommandInterpreter = Depends(get_interpreter),
) -> ChatResponse:
    """
    Apply one numeric command to the caller's session.

    A missing, empty or malformed body counts as empty input and returns
    the main menu. The session cookie is (re)issued whenever the request
    did not carry a known session token.
    """
    try:
        payload: Any = await request.json()
        body = ChatRequest.model_validate(payload if isinstance(payload, dict) else {})
    except (ValueError, ValidationError):
        body = ChatRequest()

    token, state = store.resolve(request.cookies.get(settings.session_cookie_name))
    _set_session_cookie(response, request, token)

    _, reply = await interpreter.interpret(state, body.input)

    logger.debug(f"Session {token[:6]}… input={body.input!r} mode={state.mode.value}")

    return ChatResponse(reply=reply)


# =============================================================================
# PAYMENT CALLBACK
# =============================================================================

SUCCESS_PAGE = """<!DOCTYPE html>
<html>
  <head><meta charset="utf-8"><title>Payment successful</title></head>
  <body>
    <script>
      alert("Payment successful! Your order has been placed.");
      window.location.href = "/";
    </script>
  </body>
</html>
"""


@app.get("/paystack/callback", tags=["Payments"], summary="Payment callback")
@app.get("/payments/callback", tags=["Payments"], include_in_schema=False)
async def payment_callback(
    ref: Optional[str] = Query(None),
    reference: Optional[str] = Query(None),
    correlator: Optional[PaymentCorrelator] = Depends(get_correlator),
) -> Response:
    """
    Settle the payment the gateway redirected the customer back for.

    The status is always verified with the gateway; the query string is
    only used to find the pending payment.
    """
    reference = ref or reference
    if not reference:
        return PlainTextResponse("Missing payment reference.", status_code=400)

    if correlator is None:
        return PlainTextResponse("Payments are not enabled.", status_code=404)

    try:
        outcome = await correlator.reconcile(reference)
    except GatewayError as e:
        logger.error(f"Callback {reference}: verification failed [{e.code}] {e.message}")
        return PlainTextResponse(
            "Payment verification failed. Please try again later.",
            status_code=502,
        )

    if outcome == ConfirmationOutcome.CONFIRMED:
        return HTMLResponse(SUCCESS_PAGE)
    if outcome == ConfirmationOutcome.PENDING:
        return PlainTextResponse(
            "Payment is still processing. Refresh this page in a moment.",
            status_code=202,
        )
    if outcome == ConfirmationOutcome.FAILED:
        return PlainTextResponse(
            "Payment was not successful. Your order is still in your cart.",
            status_code=400,
        )
    return PlainTextResponse("Payment reference not found.", status_code=404)


# =============================================================================
# HEALTH
# =============================================================================

@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    store: SessionStore = Depends(get_session_store),
    correlator: Optional[PaymentCorrelator] = Depends(get_correlator),
) -> HealthResponse:
    """Report gateway reachability and the number of live sessions."""
    if correlator is None:
        gateway_status = "disabled"
    elif await correlator.gateway.health_check():
        gateway_status = "healthy"
    else:
        gateway_status = "unhealthy"

    return HealthResponse(
        status="degraded" if gateway_status == "unhealthy" else "operational",
        environment=settings.env_mode.value,
        payment_provider=settings.payment_provider.value,
        payment_gateway=gateway_status,
        sessions=len(store),
        timestamp=datetime.now(),
    )


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="Internal Server Error",
            detail=str(exc) if settings.debug else "An unexpected error occurred",
        ).model_dump(),
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
