"""
Guide Generation Endpoint
One POST route switching on `action`. generate-guide can answer with
Server-Sent Events instead of a JSON body when `stream` is true.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ValidationError
from context import AppContext, get_context
from config import ConfigurationError
from models.generation import DecodeVinPayload, DiagnosticChatPayload, GenerateGuideRequest
from models.vehicle import Vehicle, VehicleTask
from services.guide_service import GuideService
import json
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


async def _decode_vin(service: GuideService, payload: DecodeVinPayload):
    return await service.decode_vin(payload.vin)


async def _vehicle_info(service: GuideService, payload: VehicleTask):
    return await service.get_vehicle_info(payload.vehicle, payload.task)


async def _generate_guide(service: GuideService, payload: VehicleTask):
    return await service.generate_full_repair_guide(payload.vehicle, payload.task)


async def _diagnostic_chat(service: GuideService, payload: DiagnosticChatPayload):
    return await service.diagnostic_chat(payload.vehicle, payload.message, payload.history)


async def _quick_preview(service: GuideService, payload: VehicleTask):
    return await service.quick_preview(payload.vehicle, payload.task)


# action -> (payload model, operation, needs the AI provider)
ACTIONS = {
    "decode-vin": (DecodeVinPayload, _decode_vin, False),
    "vehicle-info": (VehicleTask, _vehicle_info, True),
    "generate-guide": (VehicleTask, _generate_guide, True),
    "diagnostic-chat": (DiagnosticChatPayload, _diagnostic_chat, True),
    "quick-preview": (VehicleTask, _quick_preview, True),
}

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # Disable nginx buffering
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _payload_error(e: ValidationError) -> str:
    details = "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'payload'}: {err['msg']}"
        for err in e.errors()
    )
    return f"Invalid payload: {details}"


def sse_event(data: dict) -> str:
    return f"data: {json.dumps(data, separators=(',', ':'))}\n\n"


async def stream_guide(service: GuideService, vehicle: Vehicle, task: str):
    """
    Exactly two events: "generating" straight away, then one of "complete" or
    "error". Headers are already sent by the time the provider answers, so
    failures can only be reported in-band.
    """
    yield sse_event({"status": "generating", "progress": 0})

    try:
        guide = await service.generate_full_repair_guide(vehicle, task)
    except Exception as e:
        logger.exception(f"Streaming guide generation failed for {vehicle.display}")
        yield sse_event({"status": "error", "error": str(e) or "Internal Server Error"})
        return

    yield sse_event({"status": "complete", "data": guide.to_wire()})


@router.post("/generate-guide")
async def generate_guide(request: Request, context: AppContext = Depends(get_context)):
    """
    Actions:
    - decode-vin: {vin} -> {year, make, model, ...}
    - vehicle-info: {vehicle, task} -> overview, specs, common issues, recalls
    - generate-guide: {vehicle, task} -> RepairGuide (SSE when stream=true)
    - diagnostic-chat: {vehicle, message, history?} -> {reply, history}
    - quick-preview: {vehicle, task} -> {title, difficulty, estimatedTime, summary}
    """
    try:
        body = await request.json()
        if not isinstance(body, dict):
            body = {}

        action = body.get("action")
        if not action:
            return _error(400, "Missing action")
        if not isinstance(action, str) or action not in ACTIONS:
            return _error(400, "Invalid action")

        payload_model, operation, needs_provider = ACTIONS[action]
        try:
            envelope = GenerateGuideRequest.model_validate(body)
            payload: BaseModel = payload_model.model_validate(envelope.payload or {})
        except ValidationError as e:
            return _error(400, _payload_error(e))

        if needs_provider:
            context.require_provider()

        service = context.guide_service
        logger.info(f"Action {envelope.action} (stream={envelope.stream})")

        if envelope.action == "generate-guide" and envelope.stream:
            return StreamingResponse(
                stream_guide(service, payload.vehicle, payload.task),
                media_type="text/event-stream",
                headers=SSE_HEADERS,
            )

        result = await operation(service, payload)
        return JSONResponse(content=result.model_dump(by_alias=True, exclude_none=True))

    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return _error(500, str(e))
    except Exception as e:
        logger.exception("API Error")
        return _error(500, str(e) or "Internal Server Error")
