"""
Guide Generation Service
The operations behind /api/generate-guide: VIN decode, vehicle info, full
repair guide, diagnostic chat and quick preview.
"""

import asyncio
import logging
import time
from typing import Iterable, Type, TypeVar
from pydantic import BaseModel, ValidationError
from models.guide import (
    ChatMessage,
    ChatReply,
    QuickPreview,
    RepairGuide,
    VehicleInfo,
    is_web_url,
)
from models.vehicle import VIN_LENGTH, DecodedVehicle, Vehicle, normalize_vin
from services.nhtsa import NHTSAService, VinDecodeError
from services.openrouter import ChatSession, OpenRouterClient, ProviderError
from services.prompts import (
    DIAGNOSTIC_SYSTEM_PROMPT,
    GUIDE_SYSTEM_PROMPT,
    QUICK_PREVIEW_SCHEMA,
    REPAIR_GUIDE_SCHEMA,
    VEHICLE_INFO_SCHEMA,
    build_guide_prompt,
    build_preview_prompt,
    build_vehicle_info_prompt,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_WIRE_ROLES = {"user": "user", "model": "assistant"}
_CHAT_ROLES = {"user": "user", "assistant": "model"}


class GuideService:
    def __init__(
        self, client: OpenRouterClient, nhtsa: NHTSAService, web_search: bool = False
    ):
        self.client = client
        self.nhtsa = nhtsa
        self.web_search = web_search

    async def decode_vin(self, vin: str) -> DecodedVehicle:
        vin = normalize_vin(vin)
        if len(vin) != VIN_LENGTH:
            raise VinDecodeError(f"VIN must be exactly {VIN_LENGTH} characters")

        result = await self.nhtsa.decode_vin(vin)
        if not result.get("success"):
            raise VinDecodeError(result.get("error") or "Failed to decode VIN")
        return DecodedVehicle(**result["data"])

    async def get_vehicle_info(self, vehicle: Vehicle, task: str) -> VehicleInfo:
        completion, recalls = await asyncio.gather(
            self.client.json_completion(
                "guide",
                [
                    {"role": "system", "content": GUIDE_SYSTEM_PROMPT},
                    {"role": "user", "content": build_vehicle_info_prompt(vehicle.display, task)},
                ],
                schema=VEHICLE_INFO_SCHEMA,
                schema_name="vehicle_info",
            ),
            self.nhtsa.get_recalls(vehicle),
        )
        data, _ = completion
        return _validate(
            VehicleInfo,
            {**_require_object(data), "vehicle": vehicle.display, "task": task, "recalls": recalls},
        )

    async def generate_full_repair_guide(self, vehicle: Vehicle, task: str) -> RepairGuide:
        start_time = time.time()
        data, citations = await self.client.json_completion(
            "guide",
            [
                {"role": "system", "content": GUIDE_SYSTEM_PROMPT},
                {"role": "user", "content": build_guide_prompt(vehicle.display, task)},
            ],
            schema=REPAIR_GUIDE_SCHEMA,
            schema_name="repair_guide",
            max_tokens=8000,
            web_search=self.web_search,
        )
        data = _require_object(data)

        # The model sometimes rewrites the vehicle ("Honda Civic (2015)"); links need ours
        data["vehicle"] = vehicle.display
        data["sources"] = _merge_sources(data.get("sources") or [], citations) or None

        guide = _validate(RepairGuide, data)
        logger.info(
            f"Guide generated for {vehicle.display} / {task}: "
            f"{len(guide.steps)} steps in {time.time() - start_time:.2f}s"
        )
        return guide

    def create_diagnostic_chat(
        self, vehicle: Vehicle, history: Iterable[ChatMessage] = ()
    ) -> ChatSession:
        """Fresh session with the caller's transcript replayed into it"""
        return self.client.start_chat(
            "chat",
            DIAGNOSTIC_SYSTEM_PROMPT.format(vehicle=vehicle.display),
            [{"role": _WIRE_ROLES[turn.role], "content": turn.text} for turn in history],
        )

    async def send_diagnostic_message(self, session: ChatSession, message: str) -> str:
        return await session.send(message)

    async def diagnostic_chat(
        self, vehicle: Vehicle, message: str, history: Iterable[ChatMessage] = ()
    ) -> ChatReply:
        session = self.create_diagnostic_chat(vehicle, history)
        reply = await self.send_diagnostic_message(session, message)
        return ChatReply(
            reply=reply,
            history=[
                ChatMessage(role=_CHAT_ROLES[turn["role"]], text=turn["content"])
                for turn in session.history
            ],
        )

    async def quick_preview(self, vehicle: Vehicle, task: str) -> QuickPreview:
        data, _ = await self.client.json_completion(
            "fast",
            [
                {"role": "system", "content": GUIDE_SYSTEM_PROMPT},
                {"role": "user", "content": build_preview_prompt(vehicle.display, task)},
            ],
            schema=QUICK_PREVIEW_SCHEMA,
            schema_name="quick_preview",
            max_tokens=500,
        )
        return _validate(QuickPreview, _require_object(data))


def _require_object(data) -> dict:
    if not isinstance(data, dict):
        raise ProviderError("Model returned JSON that is not an object")
    return dict(data)


def _validate(model: Type[M], data: dict) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        logger.warning(f"{model.__name__} failed validation: {e}")
        raise ProviderError(
            f"Model returned an invalid {model.__name__} ({e.error_count()} field errors)"
        ) from e


def _merge_sources(sources: list, citations: list[dict]) -> list[dict]:
    merged = []
    seen = set()
    for source in [*sources, *citations]:
        if not isinstance(source, dict):
            continue
        uri = (source.get("uri") or "").strip()
        if not is_web_url(uri) or uri in seen:
            continue
        seen.add(uri)
        merged.append({"uri": uri, "title": source.get("title") or uri})
    return merged
