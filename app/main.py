# app/main.py - Relay app: shared WebSocket hub, OTA streaming, firmware and device HTTP API
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.core import config
from app.core.database import build_engine, build_session_maker, create_db_and_tables
from app.routers import websocket_router, firmware_router, device_router
from app.services.hub import RelayHub

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(hub: Optional[RelayHub] = None) -> FastAPI:
    """
    Build the application.

    When `hub` is None the startup handler connects to DATABASE_URL, creates
    the tables and builds the hub; tests pass a ready hub instead.
    """
    app = FastAPI(title="Environment Monitor Relay")
    app.state.hub = hub
    app.state.engine = None

    # Dashboards and devices live on the local network, any origin is allowed
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(websocket_router)
    app.include_router(firmware_router)
    app.include_router(device_router)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        return JSONResponse(status_code=exc.status_code, content={"success": False, "message": exc.detail})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning("Malformed request to %s: %s", request.url.path, exc.errors())
        return JSONResponse(status_code=400, content={"success": False, "message": "Malformed request body"})

    @app.get("/health")
    async def health(request: Request):
        hub = request.app.state.hub
        active = hub.streamer.active_session
        return {
            "status": "ok",
            "connections": hub.registry.counts(),
            "ota": None if active is None else {
                "version": active.version,
                "state": active.state.value,
                "percent": active.percent_complete,
            },
        }

    @app.on_event("startup")
    async def on_startup():
        if app.state.hub is None:
            engine = build_engine()
            await create_db_and_tables(engine)
            app.state.engine = engine
            app.state.hub = RelayHub(build_session_maker(engine))
            logger.info("Tables created or already exist.")
        logger.info("Relay ready (OTA chunk delay %d ms)", config.OTA_CHUNK_DELAY_MS)

    @app.on_event("shutdown")
    async def on_shutdown():
        await app.state.hub.close()
        if app.state.engine is not None:
            await app.state.engine.dispose()

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.HOST, port=config.PORT)
