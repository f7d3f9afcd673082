"""
FastAPI application entry point: alert webhook and plain history listing.
"""

from __future__ import annotations

from typing import Callable, List, Optional
import logging
import os
import time

from fastapi import Depends, FastAPI, HTTPException, Request, status

from .config import ConfigError, Settings
from .database import HistoryStoreError
from .hardware import BaseSwitchController, DeviceError, build_controller
from .schemas import HistoryEntryModel, InvocationResult, NotifyRequest
from .services import LampService

request_logger = logging.getLogger("lavalamp.requests")


def create_app(
    settings: Optional[Settings] = None,
    hardware: Optional[BaseSwitchController] = None,
    clock: Optional[Callable[[], float]] = None,
) -> FastAPI:
    """
    Build and configure the FastAPI application. Every request runs one
    invocation under the history lock, exactly like a CLI run would.
    """
    settings = settings or Settings()
    app = FastAPI(title="Lava Lamp Guard", version="0.1.0")

    owned = build_controller(settings) if hardware is None else None
    lamp_service = LampService(
        settings,
        hardware or owned,
        clock=clock or time.time,
    )
    app.state.lamp_service = lamp_service

    @app.on_event("shutdown")
    def shutdown_event() -> None:
        if owned is not None:
            owned.close()

    def get_lamp_service(request: Request) -> LampService:
        svc: LampService = request.app.state.lamp_service
        return svc

    def _invoke(action: Callable[[], InvocationResult]) -> InvocationResult:
        try:
            return action()
        except ConfigError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
        except DeviceError as exc:
            request_logger.error("device failure: %s", exc)
            raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
        except HistoryStoreError as exc:
            request_logger.error("history store failure: %s", exc)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
            )

    @app.get("/api/history", response_model=List[HistoryEntryModel])
    def api_history(svc: LampService = Depends(get_lamp_service)) -> List[HistoryEntryModel]:
        try:
            return svc.list_history().models()
        except HistoryStoreError as exc:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc)
            )

    @app.post("/api/notify", response_model=InvocationResult)
    def api_notify(
        payload: NotifyRequest, svc: LampService = Depends(get_lamp_service)
    ) -> InvocationResult:
        # Alert systems call this instead of spawning the CLI in notify mode.
        return _invoke(lambda: svc.notify(payload.type, payload.label))

    @app.post("/api/watch", response_model=InvocationResult)
    def api_watch(svc: LampService = Depends(get_lamp_service)) -> InvocationResult:
        return _invoke(svc.watch)

    return app


def run() -> None:
    """
    Console entry point serving the API with uvicorn.
    """
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        create_app(),
        host=os.getenv("LAMP_API_HOST", "127.0.0.1"),
        port=int(os.getenv("LAMP_API_PORT", "8000")),
    )
