from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Literal, Optional
from urllib.parse import urlparse


def is_web_url(uri: Optional[str]) -> bool:
    """Only http(s) links with a host are safe to put in an href or src"""
    if not uri:
        return False
    parsed = urlparse(uri.strip())
    return parsed.scheme.lower() in ("http", "https") and bool(parsed.netloc)


class CamelModel(BaseModel):
    """Wire format is camelCase (safetyWarnings, imageUrl, ...)"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class GuideStep(CamelModel):
    step: int = Field(..., ge=1)
    instruction: str
    image_url: Optional[str] = None


class GuideSource(CamelModel):
    uri: str
    title: str = ""


class RepairGuide(CamelModel):
    title: str
    vehicle: str
    safety_warnings: list[str] = []
    tools: list[str] = []
    parts: list[str] = []
    steps: list[GuideStep] = []
    sources: Optional[list[GuideSource]] = None


class AffiliateLink(CamelModel):
    provider: str
    url: str
    price: str


class QuickPreview(CamelModel):
    title: str
    difficulty: int = Field(..., ge=1, le=5)
    estimated_time: str
    summary: str


class VehicleSpec(CamelModel):
    label: str
    value: str


class Recall(CamelModel):
    campaign: str
    component: str = ""
    summary: str = ""


class VehicleInfo(CamelModel):
    vehicle: str
    task: str
    overview: str
    difficulty: int = Field(..., ge=1, le=5)
    estimated_time: str
    common_issues: list[str] = []
    specifications: list[VehicleSpec] = []
    recalls: list[Recall] = []


class ChatMessage(CamelModel):
    role: Literal["user", "model"]
    text: str


class ChatReply(CamelModel):
    reply: str
    history: list[ChatMessage]
