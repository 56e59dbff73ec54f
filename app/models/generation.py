from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Any, Optional
from models.guide import ChatMessage
from models.vehicle import VIN_LENGTH, Vehicle, normalize_vin


class GenerateGuideRequest(BaseModel):
    """Envelope posted to /api/generate-guide"""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "action": "generate-guide",
                "payload": {
                    "vehicle": {"year": "2015", "make": "Honda", "model": "Civic"},
                    "task": "replace brake pads",
                },
                "stream": True,
            }
        }
    )

    action: Optional[str] = None
    payload: Optional[dict[str, Any]] = None
    stream: bool = False


class DecodeVinPayload(BaseModel):
    vin: str

    @field_validator("vin")
    @classmethod
    def _check_length(cls, value: str) -> str:
        vin = normalize_vin(value)
        if len(vin) != VIN_LENGTH:
            raise ValueError(f"VIN must be exactly {VIN_LENGTH} characters")
        return vin


class DiagnosticChatPayload(BaseModel):
    vehicle: Vehicle
    message: str = Field(..., min_length=1)
    history: list[ChatMessage] = []
