"""REST layer over MemoPad (aiohttp).

Routes (all JSON):
    GET    /api/health
    GET    /api/memos
    GET    /api/memos/{id}
    POST   /api/memos               {title?, body?}
    PUT    /api/memos/reorder       {orderedIds: [...]}
    PUT    /api/memos/{id}          {title?, body?}
    DELETE /api/memos/{id}

Every mutation is flushed to storage before the response is sent.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from aiohttp import web

from memopad.memo.errors import MemoError

if TYPE_CHECKING:
    from memopad.config import ServerConfig
    from memopad.core import MemoPad

logger = logging.getLogger(__name__)

PAD_KEY = web.AppKey("pad", object)

DEFAULT_TITLE = "new memo"

_STATUS_BY_KIND = {
    "not_found": 404,
    "last_item": 400,
    "index_out_of_range": 400,
    "decode_failure": 400,
    "not_ready": 503,
}


def _error(message: str, kind: str, status: int) -> web.Response:
    return web.json_response({"error": message, "kind": kind}, status=status)


@web.middleware
async def error_middleware(request: web.Request, handler):
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except MemoError as e:
        return _error(str(e), e.kind, _STATUS_BY_KIND.get(e.kind, 500))
    except ValueError as e:
        return _error(f"Invalid request: {e}", "bad_request", 400)
    except Exception:
        logger.exception("Unhandled error for %s %s", request.method, request.path)
        return _error("Internal server error", "internal", 500)


def cors_middleware(origin: str):
    @web.middleware
    async def middleware(request: web.Request, handler):
        if request.method == "OPTIONS":
            response = web.Response(status=204)
        else:
            response = await handler(request)
        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, DELETE"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        return response

    return middleware


def _pad(request: web.Request) -> MemoPad:
    return request.app[PAD_KEY]


async def _json_body(request: web.Request) -> dict:
    if not request.can_read_body:
        return {}
    body = await request.json()
    if not isinstance(body, dict):
        raise ValueError("JSON body must be an object")
    return body


def _optional_str(body: dict, key: str) -> str | None:
    value = body.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"'{key}' must be a string")
    return value


# ── Handlers ──────────────────────────────────────────────────


async def health(request: web.Request) -> web.Response:
    return web.json_response(
        {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}
    )


async def list_memos(request: web.Request) -> web.Response:
    pad = _pad(request)
    pad.require_ready()
    return web.json_response([m.to_dict() for m in pad.memos])


async def get_memo(request: web.Request) -> web.Response:
    pad = _pad(request)
    pad.require_ready()
    return web.json_response(pad.get(request.match_info["id"]).to_dict())


async def create_memo(request: web.Request) -> web.Response:
    pad = _pad(request)
    body = await _json_body(request)
    async with pad.lock:
        memo = pad.add(
            title=_optional_str(body, "title") or DEFAULT_TITLE,
            body=_optional_str(body, "body") or "",
        )
        await pad.flush()
    return web.json_response(memo.to_dict(), status=201)


async def update_memo(request: web.Request) -> web.Response:
    pad = _pad(request)
    body = await _json_body(request)
    async with pad.lock:
        memo = pad.update(
            request.match_info["id"],
            title=_optional_str(body, "title"),
            body=_optional_str(body, "body"),
        )
        await pad.flush()
    return web.json_response(memo.to_dict())


async def delete_memo(request: web.Request) -> web.Response:
    pad = _pad(request)
    async with pad.lock:
        await pad.delete(request.match_info["id"])
        await pad.flush()
    return web.json_response({"success": True})


async def reorder_memos(request: web.Request) -> web.Response:
    pad = _pad(request)
    body = await _json_body(request)
    ordered_ids = body.get("orderedIds")
    if not isinstance(ordered_ids, list) or not all(isinstance(i, str) for i in ordered_ids):
        raise ValueError("'orderedIds' must be a list of strings")
    async with pad.lock:
        memos = pad.reorder_by_ids(ordered_ids)
        await pad.flush()
    return web.json_response([m.to_dict() for m in memos])


# ── App wiring ────────────────────────────────────────────────


def create_app(pad: MemoPad, cors_origin: str = "http://localhost:3000") -> web.Application:
    """Build the aiohttp application. The pad is initialized on startup."""
    app = web.Application(middlewares=[cors_middleware(cors_origin), error_middleware])
    app[PAD_KEY] = pad

    app.router.add_get("/api/health", health)
    app.router.add_get("/api/memos", list_memos)
    app.router.add_post("/api/memos", create_memo)
    # Registered before /{id} so "reorder" is not captured as an id
    app.router.add_put("/api/memos/reorder", reorder_memos)
    app.router.add_get("/api/memos/{id}", get_memo)
    app.router.add_put("/api/memos/{id}", update_memo)
    app.router.add_delete("/api/memos/{id}", delete_memo)

    async def on_startup(app: web.Application) -> None:
        status = await app[PAD_KEY].initialize()
        logger.info("Memo store initialized (status=%s)", status)

    async def on_cleanup(app: web.Application) -> None:
        await app[PAD_KEY].close()

    app.on_startup.append(on_startup)
    app.on_cleanup.append(on_cleanup)
    return app


async def serve(
    pad: MemoPad, config: ServerConfig, shutdown_event: asyncio.Event | None = None
) -> None:
    """Run the REST server until shutdown_event is set."""
    shutdown_event = shutdown_event or asyncio.Event()
    app = create_app(pad, cors_origin=config.cors_origin)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, config.host, config.port)
    await site.start()
    logger.info("MemoPad REST API listening on http://%s:%d", config.host, config.port)
    try:
        await shutdown_event.wait()
    finally:
        await runner.cleanup()
        logger.info("MemoPad REST API stopped.")
