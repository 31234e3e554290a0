import asyncio
import json
import logging

from pydantic import TypeAdapter, ValidationError
from starlette.websockets import WebSocket, WebSocketDisconnect

from ..domain.entities import (
    AudioCueMessage,
    BiofeedbackSampleMessage,
    ErrorCode,
    ErrorOutMessage,
    HapticCueMessage,
    NoticeMessage,
    OutboundMessage,
    PhaseChangeMessage,
    SessionReportMessage,
    SessionStartedMessage,
    SessionStoppedMessage,
    VoiceCueMessage,
)
from ..domain.entities.websocket_messages import (
    ClientMessage,
    ConfigUpdateRequest,
    SessionFinishRequest,
    SessionResetRequest,
    SessionStartRequest,
    SessionStopRequest,
)
from .controller import BreathingCoachController

logger = logging.getLogger(__name__)

client_message_adapter = TypeAdapter(ClientMessage)


class WebSocketHandler:
    """Streams engine output to one client and applies its control messages."""

    def __init__(self, controller: BreathingCoachController):
        self._controller = controller
        self._queue = None

    async def handle_websocket(self, websocket: WebSocket) -> None:
        # Note: websocket.accept() is called by the API endpoint before this
        self._queue = self._controller.hub.subscribe()
        send_task = asyncio.create_task(self._send_loop(websocket))
        receive_task = asyncio.create_task(self._receive_loop(websocket))
        logger.info(f"WebSocket client {websocket.client} attached")

        done, pending = await asyncio.wait(
            {send_task, receive_task},
            return_when=asyncio.FIRST_COMPLETED,
        )
        try:
            for task in done:
                exc = task.exception()
                if exc:
                    raise exc
        except WebSocketDisconnect:
            logger.info(f"WebSocket disconnected: {websocket.client}")
        except Exception as e:
            logger.error(f"WebSocket error: {e}", exc_info=True)
        finally:
            self._controller.hub.unsubscribe(self._queue)
            for t in pending:
                t.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            logger.info(f"WebSocket connection closed: {websocket.client}")

    async def _send_loop(self, websocket: WebSocket) -> None:
        while True:
            item: OutboundMessage = await self._queue.get()

            match item:
                case PhaseChangeMessage():
                    await websocket.send_text(item.phase_change.model_dump_json())

                case BiofeedbackSampleMessage():
                    await websocket.send_text(item.update.model_dump_json())

                case HapticCueMessage() | VoiceCueMessage() | AudioCueMessage():
                    await websocket.send_text(item.cue.model_dump_json())

                case SessionStartedMessage():
                    await websocket.send_text(item.session_started.model_dump_json())

                case SessionStoppedMessage():
                    await websocket.send_text(item.session_stopped.model_dump_json())

                case SessionReportMessage():
                    await websocket.send_text(item.report_ready.model_dump_json())

                case NoticeMessage():
                    await websocket.send_text(item.notice.model_dump_json())

                case ErrorOutMessage():
                    await websocket.send_text(item.error.model_dump_json())

                case _:
                    # Unknown message type
                    raise ValueError(f"Unknown OutboundMessage type: {type(item)}")

    async def _receive_loop(self, websocket: WebSocket) -> None:
        """Receive control messages from client and apply them."""
        while True:
            data = await websocket.receive()

            if data.get("type") == "websocket.disconnect":
                logger.info(f"Client disconnected: {data.get('code')}")
                break

            if data.get("type") == "websocket.receive" and data.get("text") is not None:
                await self._handle_text(data["text"])
            else:
                self._send_error(ErrorCode.INVALID_MESSAGE, "Only JSON text messages are supported")

    async def _handle_text(self, text: str) -> None:
        try:
            message = client_message_adapter.validate_python(json.loads(text))
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON message: {e}")
            self._send_error(ErrorCode.INVALID_MESSAGE, f"Invalid JSON: {e}")
            return
        except ValidationError as e:
            logger.warning(f"Invalid control message: {e}")
            self._send_error(ErrorCode.INVALID_MESSAGE, str(e))
            return

        await self._handle_control_message(message)

    async def _handle_control_message(self, message) -> None:
        """Route a validated control message to the controller."""
        controller = self._controller

        match message:
            case SessionStartRequest():
                if not controller.start_session():
                    self._send_notice("Session already playing")

            case SessionStopRequest():
                if not controller.stop_session():
                    self._send_notice("Session not playing")

            case SessionFinishRequest():
                controller.finish_session()

            case SessionResetRequest():
                try:
                    await controller.close_report()
                except OSError as e:
                    logger.error(f"Error saving session history: {e}", exc_info=True)
                    self._send_error(ErrorCode.INTERNAL_ERROR, "Could not save session history")

            case ConfigUpdateRequest():
                try:
                    controller.update_config(message.config)
                except ValueError as e:
                    self._send_error(ErrorCode.INVALID_CONFIG, str(e))

    def _reply(self, message: OutboundMessage) -> None:
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(message)

    def _send_notice(self, text: str) -> None:
        self._reply(NoticeMessage(text))

    def _send_error(self, code: ErrorCode, text: str) -> None:
        self._reply(ErrorOutMessage(code, text))
