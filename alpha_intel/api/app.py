"""
ALPHA INTEL — FastAPI Application
Paid alpha report endpoints gated by an x402 Stacks payment, plus
/healthz and a landing page.
"""
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import FastAPI, Header
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from alpha_intel.config.settings import get_settings
from alpha_intel.engines.report_composer import get_report_composer
from alpha_intel.payment.verifier import get_payment_verifier, payment_required
from alpha_intel.utils.helpers import utc_timestamp
from alpha_intel.utils.logger import bind_caller, bind_request, get_logger, setup_logging

logger = get_logger("api")

app_state: Dict[str, Any] = {
    "instance_id": str(uuid.uuid4())[:8],
    "started_at": None,
    "reports_served": 0,
    "payments_rejected": 0,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Connect shared clients on startup and close them on shutdown."""
    setup_logging()
    settings = get_settings()
    app_state["started_at"] = utc_timestamp()

    logger.info("alpha_intel_starting", version=settings.version, instance=app_state["instance_id"])

    composer = get_report_composer()
    verifier = get_payment_verifier()
    await composer.initialize()
    await verifier.connect()

    logger.info("alpha_intel_ready")

    yield

    logger.info("alpha_intel_shutting_down")
    await composer.shutdown()
    await verifier.disconnect()


app = FastAPI(
    title="Alpha Intelligence",
    description="Aggregated crypto market intelligence behind an x402 payment",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


async def _check_payment(x_payment: Optional[str], resource: str, price: int):
    """Return (caller, None) when paid, or (None, error response)."""
    if not x_payment:
        return None, JSONResponse(status_code=402, content=payment_required(resource, price))

    verification = await get_payment_verifier().verify(x_payment)
    if not verification.valid:
        app_state["payments_rejected"] += 1
        return None, JSONResponse(
            status_code=403,
            content={"error": "Payment verification failed", "details": verification.error},
        )
    bind_caller(verification.caller)
    return verification.caller, None


# ─── Health ─────────────────────────────────────────────────────

@app.get("/healthz", tags=["System"])
async def health_check():
    return {
        "status": "healthy",
        "instance": app_state["instance_id"],
        "uptime_since": app_state["started_at"],
        "reports_served": app_state["reports_served"],
        "timestamp": utc_timestamp(),
    }


# ─── Alpha Endpoints ────────────────────────────────────────────

@app.post("/alpha", tags=["Alpha"])
async def full_alpha(x_payment: Optional[str] = Header(default=None)):
    """Full alpha report: signals, risk, whale activity and summary."""
    bind_request("/alpha")
    payment = get_settings().payment
    caller, rejection = await _check_payment(x_payment, "/alpha", payment.price)
    if rejection is not None:
        return rejection

    report = await get_report_composer().full_report(caller)
    app_state["reports_served"] += 1
    return JSONResponse(content=report.model_dump(mode="json"))


@app.get("/alpha/quick", tags=["Alpha"])
async def quick_alpha(x_payment: Optional[str] = Header(default=None)):
    """Quick snapshot with the top three signals and overall risk."""
    bind_request("/alpha/quick")
    payment = get_settings().payment
    caller, rejection = await _check_payment(x_payment, "/alpha/quick", payment.quick_price)
    if rejection is not None:
        return rejection

    report = await get_report_composer().quick_report(caller)
    app_state["reports_served"] += 1
    return JSONResponse(content=report.model_dump(mode="json"))


# ─── Landing Page ───────────────────────────────────────────────

LANDING_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>Alpha Intelligence | Premium Trading Signals</title>
  <style>
    body {{ font-family: -apple-system, sans-serif; background: #0a0a0a; color: #e0e0e0; }}
    .container {{ max-width: 800px; margin: 0 auto; padding: 40px 20px; }}
    h1 {{ color: #ffd700; }}
    .endpoint {{ border: 1px solid #333; border-radius: 8px; padding: 16px; margin: 12px 0; }}
    .path {{ color: #ffd700; font-family: monospace; }}
    footer {{ color: #555; margin-top: 40px; font-size: 0.8rem; }}
  </style>
</head>
<body>
  <div class="container">
    <h1>Alpha Intelligence</h1>
    <p>Aggregated market intelligence from Pyth, CoinGecko, KuCoin, CoinPaprika, Kraken,
       the Fear &amp; Greed index and Hiro whale data, synthesized into trading signals.</p>
    <div class="endpoint">
      <span class="path">POST /alpha</span> &mdash; {price} &micro;STX ({price_stx:.3f} STX)
      <p>Full report: signals, risk assessment, whale activity and summary.</p>
    </div>
    <div class="endpoint">
      <span class="path">GET /alpha/quick</span> &mdash; {quick_price} &micro;STX ({quick_price_stx:.3f} STX)
      <p>Quick snapshot with the top 3 signals and overall risk level.</p>
    </div>
    <p>Pay by calling <code>{function}</code> on the contract, then retry with the
       <code>X-Payment</code> header set to the transaction id.</p>
    <footer>Contract: {contract}</footer>
  </div>
</body>
</html>"""


@app.get("/", response_class=HTMLResponse, include_in_schema=False)
async def landing_page():
    payment = get_settings().payment
    return LANDING_PAGE.format(
        price=payment.price,
        price_stx=payment.price / 1_000_000,
        quick_price=payment.quick_price,
        quick_price_stx=payment.quick_price / 1_000_000,
        function=payment.function_name,
        contract=payment.contract_id,
    )
