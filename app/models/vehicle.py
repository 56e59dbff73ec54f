from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional

VIN_LENGTH = 17


def normalize_vin(vin: str) -> str:
    return (vin or "").strip().upper().replace(" ", "").replace("-", "")


def is_valid_vin(vin: str) -> bool:
    """Length check only - the checksum digit is not verified"""
    return len(normalize_vin(vin)) == VIN_LENGTH


class Vehicle(BaseModel):
    model_config = ConfigDict(frozen=True)

    year: str
    make: str
    model: str

    @field_validator("year", "make", "model", mode="before")
    @classmethod
    def _coerce_str(cls, value):
        # Decoders and JSON clients send the year as a number
        if isinstance(value, int):
            return str(value)
        return value

    @property
    def display(self) -> str:
        """'2015 Honda Civic' - the string used in prompts, titles and shopping queries"""
        return " ".join(
            part.strip() for part in (self.year, self.make, self.model) if part.strip()
        )


class DecodedVehicle(Vehicle):
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    vin: Optional[str] = None
    trim: Optional[str] = None
    engine: Optional[str] = None
    body_class: Optional[str] = None
    drive_type: Optional[str] = None
    fuel_type: Optional[str] = None


class VehicleTask(BaseModel):
    """Payload shared by vehicle-info, generate-guide and quick-preview"""

    vehicle: Vehicle
    task: str = Field(..., min_length=1, description="Repair job as described by the user")
