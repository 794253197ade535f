import asyncio
import json
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.responses import HTMLResponse, StreamingResponse
from pydantic import BaseModel, Field

from drwater_monitor.domain.commands import AdminRequired, CommandResult, LocalValidationFailure
from drwater_monitor.domain.controller import MonitorController
from drwater_monitor.hardware.device_link import DeviceLink
from drwater_monitor.infra.config import MonitorConfig, load_config
from drwater_monitor.interfaces.page import render_page


class LoginRequest(BaseModel):
    session: str = Field(..., description="Session id embedded in the served page")
    user: str = ""
    password: str = ""


class SessionRequest(BaseModel):
    session: str = ""


class CartridgeResetRequest(SessionRequest):
    cartridge: str = Field("", description="Raw cartridge number as typed, 1..7")


def _build_config(config: Optional[MonitorConfig], config_path: Optional[str]) -> MonitorConfig:
    if config is not None:
        return config
    return load_config(config_path)


def _command_response(result: CommandResult) -> dict:
    if not result.ok:
        raise HTTPException(status_code=502, detail=result.message)
    return {"ok": True, "message": result.message}


def create_app(
    config: Optional[MonitorConfig] = None,
    config_path: Optional[str] = None,
    link: Optional[DeviceLink] = None,
) -> FastAPI:
    cfg = _build_config(config, config_path)
    controller = MonitorController(cfg, link=link)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        controller.attach_event_loop(asyncio.get_running_loop())
        if cfg.poller.autostart:
            controller.start()
        try:
            yield
        finally:
            controller.stop()

    app = FastAPI(title=f"Dr. Water Monitor {cfg.device_id}", lifespan=lifespan)
    app.state.controller = controller

    @app.get("/", response_class=HTMLResponse)
    def index():
        session = controller.open_session()
        return render_page(controller.get_view(), session.id, auth=cfg.auth)

    @app.get("/view")
    def view():
        return controller.get_view()

    @app.get("/status")
    def status():
        return controller.get_status()

    @app.post("/session/login")
    def login(payload: LoginRequest):
        try:
            ok = controller.login(payload.session, payload.user, payload.password)
        except KeyError:
            raise HTTPException(status_code=404, detail="Unknown session; reload the page.")
        if not ok:
            raise HTTPException(status_code=401, detail="Authentication Failed.")
        return {"ok": True}

    @app.get("/session/{session_id}")
    def session_state(session_id: str):
        return controller.session_state(session_id)

    @app.post("/command/hard_reset")
    def hard_reset(payload: SessionRequest):
        try:
            result = controller.hard_reset(payload.session)
        except AdminRequired as exc:
            raise HTTPException(status_code=403, detail=str(exc))
        return _command_response(result)

    @app.post("/command/cartridge")
    def reset_cartridge(payload: CartridgeResetRequest):
        try:
            result = controller.reset_cartridge(payload.session, payload.cartridge)
        except AdminRequired as exc:
            raise HTTPException(status_code=403, detail=str(exc))
        except LocalValidationFailure as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        return _command_response(result)

    @app.get("/events/sse")
    async def sse():
        queue = controller.subscribe()
        await queue.put(json.dumps(controller.get_view()))

        async def event_generator():
            try:
                while True:
                    data = await queue.get()
                    yield f"data: {data}\n\n"
            finally:
                controller.unsubscribe(queue)

        return StreamingResponse(event_generator(), media_type="text/event-stream")

    return app
