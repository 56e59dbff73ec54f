import json
import httpx
import pytest
from fastapi.testclient import TestClient
from config import Settings
from context import AppContext, build_context
from main import create_app
from models.guide import ChatMessage, ChatReply, QuickPreview, RepairGuide, VehicleInfo
from models.vehicle import DecodedVehicle

CIVIC = {"year": "2015", "make": "Honda", "model": "Civic"}


def sample_guide(**overrides) -> RepairGuide:
    data = {
        "title": "Front Brake Pad Replacement",
        "vehicle": "2015 Honda Civic",
        "safetyWarnings": ["Support the car on jack stands, never on the jack alone"],
        "tools": ["Floor jack", "C-clamp"],
        "parts": ["Front brake pad set"],
        "steps": [
            {"step": 1, "instruction": "Loosen the lug nuts and raise the car."},
            {"step": 2, "instruction": "Remove the caliper bolts.", "imageUrl": "https://img.example/2.png"},
            {"step": 3, "instruction": "Swap the pads and reinstall the caliper."},
        ],
        "sources": [{"uri": "https://example.com/civic-brakes", "title": "Civic brake service"}],
    }
    data.update(overrides)
    return RepairGuide.model_validate(data)


class FakeGuideService:
    """Stands in for GuideService; records calls, optionally fails every one"""

    def __init__(self, guide=None, error=None):
        self.guide = guide or sample_guide()
        self.error = error
        self.calls = []

    def _record(self, name, *args):
        self.calls.append((name, *args))
        if self.error:
            raise self.error

    async def decode_vin(self, vin):
        self._record("decode_vin", vin)
        return DecodedVehicle(vin=vin, year="2015", make="HONDA", model="Civic", trim="LX")

    async def get_vehicle_info(self, vehicle, task):
        self._record("get_vehicle_info", vehicle, task)
        return VehicleInfo(
            vehicle=vehicle.display,
            task=task,
            overview="Routine job.",
            difficulty=2,
            estimated_time="1 hour",
        )

    async def generate_full_repair_guide(self, vehicle, task):
        self._record("generate_full_repair_guide", vehicle, task)
        return self.guide

    async def diagnostic_chat(self, vehicle, message, history=()):
        self._record("diagnostic_chat", vehicle, message, list(history))
        history = [*history, ChatMessage(role="user", text=message), ChatMessage(role="model", text="Check the pads.")]
        return ChatReply(reply="Check the pads.", history=history)

    async def quick_preview(self, vehicle, task):
        self._record("quick_preview", vehicle, task)
        return QuickPreview(title="Brake pads", difficulty=2, estimated_time="1-2 hours", summary="Easy job.")


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        openrouter_api_key="test-key",
        amazon_affiliate_tag="testtag-20",
    )


@pytest.fixture
def fake_service():
    return FakeGuideService()


@pytest.fixture
def context(settings, fake_service):
    return AppContext(settings=settings, guide_service=fake_service)


@pytest.fixture
def client(context):
    return TestClient(create_app(context=context))


@pytest.fixture
def unconfigured_client(fake_service):
    settings = Settings(_env_file=None, openrouter_api_key="", amazon_affiliate_tag="testtag-20")
    context = build_context(settings)
    context = AppContext(
        settings=settings, guide_service=fake_service, config_error=context.config_error
    )
    return TestClient(create_app(context=context))


def sse_events(body: str) -> list[str]:
    """Split an event-stream body into the raw JSON of each data: line"""
    events = []
    for block in body.split("\n\n"):
        if block.strip():
            assert block.startswith("data: ")
            events.append(block[len("data: "):])
    return events


def completion_response(content, annotations=None) -> httpx.Response:
    message = {"role": "assistant", "content": content if isinstance(content, str) else json.dumps(content)}
    if annotations:
        message["annotations"] = annotations
    return httpx.Response(200, json={"choices": [{"message": message}]})
