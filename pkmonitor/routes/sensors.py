"""Sensor input: motion events and GPS fixes over HTTP and WebSocket."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..api_models import GPSFixRequest, GPSFixResponse, MotionEventRequest, MotionEventResponse
from ..constants import MPS_TO_KMH

if TYPE_CHECKING:
    from ..app import RuntimeState

LOGGER = logging.getLogger(__name__)


def _as_reading(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def create_sensor_routes(state: RuntimeState) -> APIRouter:
    router = APIRouter()

    def _ingest_motion(
        x: float | None, y: float | None, z: float | None, timestamp_ms: float | None
    ) -> dict[str, Any]:
        sample = state.recorder.on_motion(x, y, z, timestamp_ms)
        if sample is None:
            return {"accepted": False, "band": None, "sample": None}
        return {
            "accepted": True,
            "band": state.recorder.last_band.value,
            "sample": sample.to_dict(),
        }

    def _ingest_fix(speed: float | None, accuracy: float | None) -> dict[str, Any]:
        accepted = state.speed_source.on_fix(speed, accuracy)
        speed_mps = state.speed_source.speed_mps
        return {"accepted": accepted, "speed_mps": speed_mps, "speed_kmh": speed_mps * MPS_TO_KMH}

    @router.post("/api/sensors/motion", response_model=MotionEventResponse)
    async def post_motion(req: MotionEventRequest) -> dict[str, Any]:
        return _ingest_motion(req.x, req.y, req.z, req.timestamp_ms)

    @router.post("/api/sensors/fix", response_model=GPSFixResponse)
    async def post_fix(req: GPSFixRequest) -> dict[str, Any]:
        return _ingest_fix(req.speed, req.accuracy)

    @router.websocket("/ws/sensors")
    async def sensor_stream(ws: WebSocket) -> None:
        await ws.accept()
        try:
            while True:
                message = await ws.receive_text()
                try:
                    payload = json.loads(message)
                except json.JSONDecodeError:
                    LOGGER.debug("Ignoring malformed sensor message (not valid JSON)")
                    continue
                if not isinstance(payload, dict):
                    continue
                kind = payload.get("type")
                if kind == "motion":
                    _ingest_motion(
                        _as_reading(payload.get("x")),
                        _as_reading(payload.get("y")),
                        _as_reading(payload.get("z")),
                        _as_reading(payload.get("timestamp_ms")),
                    )
                elif kind == "fix":
                    _ingest_fix(
                        _as_reading(payload.get("speed")), _as_reading(payload.get("accuracy"))
                    )
                else:
                    LOGGER.debug("Ignoring sensor message of unknown type %r", kind)
        except WebSocketDisconnect:
            LOGGER.debug("Sensor stream disconnected")
        except Exception:
            LOGGER.warning("Sensor stream handler error", exc_info=True)

    return router
