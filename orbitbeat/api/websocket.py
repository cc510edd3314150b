"""WebSocket endpoint driving a live spatial rotation session."""

import asyncio
import contextlib
import json
import logging

import numpy as np
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from orbitbeat.analysis.models import TempoEstimate
from orbitbeat.analysis.rhythm import resolve_speed, snap_multiplier
from orbitbeat.analysis.tempo import map_speed
from orbitbeat.api.schemas import (
    ConfigMessage,
    ConfigStateMessage,
    PositionMessage,
    SnapshotMessage,
    TempoMessage,
    VolumeMessage,
)
from orbitbeat.spatial import AsyncioFrameScheduler, SourceNode, SpatialRotationEngine

logger = logging.getLogger(__name__)

router = APIRouter()

# About four seconds of positions at 60 frames per second
OUTBOX_SIZE = 256


def _config_state(engine: SpatialRotationEngine) -> dict:
    config = engine.config
    return ConfigStateMessage(
        speed=config.speed,
        intensity=config.intensity,
        radius=config.radius,
    ).model_dump()


def _apply_tempo(engine: SpatialRotationEngine, message: TempoMessage) -> None:
    optimal_speed = message.optimal_speed if message.optimal_speed is not None else map_speed(message.bpm)
    estimate = TempoEstimate(bpm=message.bpm, confidence=message.confidence, optimal_speed=optimal_speed)
    speed = resolve_speed(
        message.mode,
        manual_speed=message.manual_speed,
        estimate=estimate,
        multiplier=snap_multiplier(message.multiplier, message.bpm),
    )
    engine.update_config(speed=speed)


def handle_command(engine: SpatialRotationEngine, payload: dict) -> dict | None:
    """Apply one JSON command; returns the reply message, if any."""
    kind = payload.get("type")
    if kind == "start":
        engine.start()
    elif kind == "stop":
        engine.stop()
    elif kind == "config":
        changes = ConfigMessage.model_validate(payload).model_dump(exclude={"type"}, exclude_none=True)
        engine.update_config(changes)
        return _config_state(engine)
    elif kind == "tempo":
        _apply_tempo(engine, TempoMessage.model_validate(payload))
        return _config_state(engine)
    elif kind == "volume":
        engine.set_volume(VolumeMessage.model_validate(payload).value)
    elif kind == "snapshot":
        return SnapshotMessage(data=engine.snapshot().tolist()).model_dump()
    else:
        return {"type": "error", "message": f"Unknown message type: {kind!r}"}
    return None


def enqueue(outbox: asyncio.Queue, message: dict) -> None:
    """Queue a message, dropping the oldest one when the client lags behind."""
    if outbox.full():
        try:
            outbox.get_nowait()
        except asyncio.QueueEmpty:
            pass
    outbox.put_nowait(message)


async def _drain(websocket: WebSocket, outbox: asyncio.Queue) -> None:
    while True:
        message = await outbox.get()
        await websocket.send_json(message)


@router.websocket("/ws/spatial")
async def spatial_session(websocket: WebSocket):
    """Live rotation session.

    Protocol:
    - Client sends JSON commands: start, stop, config, tempo, volume, snapshot
    - Client sends binary Float32 PCM blocks (mono) for the visualizer
    - Server sends JSON messages:
      - {"type": "position", "x": X, "y": Y, "z": Z, "angle": A} every tick and on stop
      - {"type": "config", "speed": S, "intensity": I, "radius": R}
      - {"type": "snapshot", "data": [...]}
      - {"type": "error", "message": "..."}
    """
    await websocket.accept()

    outbox: asyncio.Queue = asyncio.Queue(maxsize=OUTBOX_SIZE)
    source = SourceNode()

    def on_position(position):
        enqueue(outbox, PositionMessage(
            x=position.x, y=position.y, z=position.z, angle=engine.angle,
        ).model_dump())

    engine = SpatialRotationEngine(
        source,
        scheduler=AsyncioFrameScheduler(),
        on_position=on_position,
    )
    sender = asyncio.create_task(_drain(websocket, outbox))

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            data = message.get("bytes")
            if data is not None:
                if len(data) % 4:
                    enqueue(outbox, {"type": "error", "message": "PCM block must be Float32"})
                    continue
                source.push(np.frombuffer(data, dtype=np.float32))
                continue

            try:
                payload = json.loads(message.get("text") or "")
                if not isinstance(payload, dict):
                    raise ValueError("Expected a JSON object")
                reply = handle_command(engine, payload)
            except (ValueError, ValidationError) as e:
                reply = {"type": "error", "message": str(e)}
            if reply is not None:
                enqueue(outbox, reply)

    except WebSocketDisconnect:
        pass
    finally:
        engine.destroy()
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError, Exception):
            await sender
        logger.debug("Spatial session closed")
