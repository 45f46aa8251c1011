"""
FastAPI application — the chatrelay entry point.
Exposes POST /chat (also at /api/chat, where the browser client posts) and
relays each turn to the selected provider.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from chatrelay import __version__
from chatrelay.adapters.registry import ProviderRegistry
from chatrelay.config import get_config
from chatrelay.relay import Relay


# ---------------------------------------------------------------------------
# Globals, initialized at startup
# ---------------------------------------------------------------------------
relay: Relay | None = None
registry: ProviderRegistry | None = None


def _setup_logging(cfg: dict):
    log_cfg = cfg.get("logging", {})
    level = getattr(logging, str(log_cfg.get("level", "INFO")).upper(), logging.INFO)
    log_file = log_cfg.get("file")

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    global relay, registry

    cfg = get_config()
    _setup_logging(cfg)
    logger = logging.getLogger(__name__)

    registry = ProviderRegistry(cfg.get("providers", {}))
    timeout = float(cfg.get("relay", {}).get("timeout", 60))
    relay = Relay(registry, timeout=timeout)

    logger.info(
        "chatrelay started — listening on %s:%s, provider timeout %.0fs",
        cfg["server"]["host"],
        cfg["server"]["port"],
        timeout,
    )

    yield

    logger.info("chatrelay shutting down")


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
app = FastAPI(
    title="chatrelay",
    description="Stateless relay from one chat client to many LLM providers.",
    version=__version__,
    lifespan=lifespan,
)


@app.post("/chat")
@app.post("/api/chat")
async def chat(request: Request):
    """
    Relay one chat turn.
    200 {aiResponse, rawResponse} | 400 {error} | 500 {error}
    """
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse({"error": "Invalid JSON body"}, status_code=400)

    status, payload = await relay.handle_chat(body)
    return JSONResponse(payload, status_code=status)


@app.get("/health")
async def health():
    return JSONResponse({"status": "ok", "version": __version__})


@app.get("/api/v1/providers")
async def providers():
    """Built-in providers with their default models, plus reserved keys."""
    return JSONResponse(registry.describe())
