"""FastAPI app entry."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ifixai.agents.dispatch import get_providers
from ifixai.agents.transport import close_async_client
from ifixai.api.chat import router as chat_router
from ifixai.api.conversations import router as conversations_router
from ifixai.api.models import router as models_router
from ifixai.api.responses import error_response
from ifixai.api.settings import router as settings_router
from ifixai.config.settings import settings
from ifixai.init_config import ensure_runtime_dirs
from ifixai.storage import get_store
from ifixai.util.logger import logger

app = FastAPI(title=settings.app_name)
app.include_router(chat_router, prefix="/api/chat")
app.include_router(conversations_router, prefix="/api/conversations")
app.include_router(settings_router, prefix="/api/settings")
app.include_router(models_router, prefix="/api/models")


@app.middleware("http")
async def request_boundary_middleware(request: Request, call_next):
    content_length_header = request.headers.get("content-length", "").strip()
    if settings.max_request_body_bytes > 0 and request.method.upper() in {"POST", "PUT", "PATCH"} and content_length_header:
        try:
            content_length = int(content_length_header)
        except ValueError:
            logger.warning("reject invalid content-length path=%s", request.url.path)
            return error_response(400, "invalid content-length")
        if content_length > settings.max_request_body_bytes:
            logger.warning(
                "reject oversize request content_length=%s max=%s path=%s",
                content_length,
                settings.max_request_body_bytes,
                request.url.path,
            )
            return error_response(413, "request body too large")

    try:
        response = await call_next(request)
    except Exception as exc:  # pragma: no cover - fail-safe
        logger.exception("unhandled exception method=%s path=%s", request.method, request.url.path)
        return error_response(500, str(exc) or "internal error")
    logger.debug("request done method=%s path=%s status=%s", request.method, request.url.path, response.status_code)
    return response


# outermost middleware; CORS headers must reach every response
app.add_middleware(
    CORSMiddleware,
    allow_origins=[item.strip() for item in settings.cors_allow_origins.split(",") if item.strip()],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/api/health")
def health() -> dict:
    return {"status": "ok", "timestamp": datetime.now(tz=timezone.utc).isoformat()}


@app.get("/api/agents")
def list_agents() -> JSONResponse:
    return JSONResponse(
        content=[
            {
                "agent_type": agent.value,
                "label": provider.label,
                "default_model": provider.default_model,
                "supports_images": provider.supports_images,
            }
            for agent, provider in get_providers().items()
        ]
    )


@app.on_event("startup")
async def startup_init() -> None:
    ensure_runtime_dirs()
    store = get_store()
    logger.info("%s ready env=%s db=%s", settings.app_name, settings.env, store.db_path)


@app.on_event("shutdown")
async def shutdown_cleanup() -> None:
    await close_async_client()


def run() -> None:
    import uvicorn

    uvicorn.run("ifixai.core.app:app", host=settings.host, port=settings.port, log_level=settings.log_level.lower())
