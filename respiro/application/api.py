"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Query, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from ..domain.entities import SessionConfigUpdate
from .config import settings
from .controller import BreathingCoachController, build_controller
from .websocket_handler import WebSocketHandler

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Initialize controller from settings (timers bind to the serving event loop)
controller = build_controller(settings)


def get_controller() -> BreathingCoachController:
    """Dependency returning the process-wide controller."""
    return controller


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # No timer may outlive the loop it was scheduled on
    controller.shutdown()


# Create FastAPI app instance
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check(controller: BreathingCoachController = Depends(get_controller)):
    """Health check endpoint."""
    return controller.get_health_status()


@app.get("/patterns")
async def get_patterns(controller: BreathingCoachController = Depends(get_controller)):
    """List the breathing pattern catalog."""
    patterns = controller.list_patterns()
    return {"patterns": [p.model_dump(mode="json") for p in patterns]}


@app.get("/patterns/{pattern_id}")
async def get_pattern(pattern_id: str, controller: BreathingCoachController = Depends(get_controller)):
    """Get one breathing pattern.

    Args:
        pattern_id: Catalog identifier, e.g. ``box``.
    """
    try:
        return controller.get_pattern(pattern_id).model_dump(mode="json")
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


@app.get("/session")
async def get_session(controller: BreathingCoachController = Depends(get_controller)):
    """Current session state."""
    return controller.get_session_state()


@app.patch("/session/config")
async def update_session_config(
    update: SessionConfigUpdate,
    controller: BreathingCoachController = Depends(get_controller),
):
    """Apply a partial configuration update.

    Changing the pattern or breath cycle duration while playing restarts
    the session at INHALE; ``is_playing`` starts or stops it.
    """
    try:
        config = controller.update_config(update)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except Exception as e:
        logger.error(f"Error updating session config: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")
    return {"config": config.model_dump(mode="json"), "status": controller.status.value}


@app.post("/session/start")
async def start_session(controller: BreathingCoachController = Depends(get_controller)):
    """Start the breathing session."""
    started = controller.start_session()
    return {"started": started, "session": controller.get_session_state()}


@app.post("/session/stop")
async def stop_session(controller: BreathingCoachController = Depends(get_controller)):
    """Stop the breathing session, keeping its history for the report."""
    stopped = controller.stop_session()
    return {"stopped": stopped, "session": controller.get_session_state()}


@app.post("/session/finish")
async def finish_session(controller: BreathingCoachController = Depends(get_controller)):
    """Stop the session and return its completion report."""
    report = controller.finish_session()
    return {"report": report.model_dump(mode="json") if report else None}


@app.post("/session/report/close")
async def close_report(controller: BreathingCoachController = Depends(get_controller)):
    """Save the pending report to the history and reset the session."""
    try:
        saved = await controller.close_report()
    except OSError as e:
        logger.error(f"Error saving session history: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Could not save session history")
    return {"saved": saved.model_dump(mode="json") if saved else None}


@app.post("/session/reset")
async def reset_session(controller: BreathingCoachController = Depends(get_controller)):
    """Clear history, start metrics and session start time."""
    controller.reset_session()
    return {"session": controller.get_session_state()}


@app.get("/session/history")
async def get_session_history(
    limit: Optional[int] = Query(None, ge=0, description="Only the newest N samples"),
    controller: BreathingCoachController = Depends(get_controller),
):
    """Bounded biofeedback history of the current session, oldest first."""
    samples = controller.get_history(limit)
    return {"samples": [s.model_dump(mode="json") for s in samples]}


@app.get("/history")
async def get_saved_sessions(controller: BreathingCoachController = Depends(get_controller)):
    """Saved session summaries, newest first."""
    sessions = await controller.get_saved_sessions()
    return {"sessions": [s.model_dump(mode="json") for s in sessions]}


@app.get("/history/stats")
async def get_history_stats(controller: BreathingCoachController = Depends(get_controller)):
    """Totals, streak and average vagal score across the saved history."""
    stats = await controller.get_aggregated_stats()
    return stats.model_dump(mode="json")


@app.websocket("/ws")
async def websocket_endpoint(
    websocket: WebSocket,
    controller: BreathingCoachController = Depends(get_controller),
):
    """
    WebSocket endpoint streaming the breathing session.

    Server → client JSON frames:
    - phase.change, biofeedback.sample
    - cue.haptic, cue.voice, cue.audio (only when enabled)
    - session.started, session.stopped, session.report
    - server_notice, error

    Client → server control messages:
    - session.start, session.stop, session.finish, session.reset
    - config.update {"config": {...}}
    """
    await websocket.accept()
    logger.info(f"WebSocket connection accepted from {websocket.client}")

    handler = WebSocketHandler(controller)
    await handler.handle_websocket(websocket)
