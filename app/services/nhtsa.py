"""
NHTSA vPIC + Recalls API Integration
FREE, no key - VIN decode and recall campaigns
"""

import httpx
import logging
from typing import Optional, Dict, Any, List
from models.vehicle import Vehicle

logger = logging.getLogger(__name__)


class VinDecodeError(Exception):
    """VIN lookup failed or did not identify a vehicle"""


class NHTSAService:
    def __init__(
        self,
        base_url: str = "https://vpic.nhtsa.dot.gov/api",
        recalls_url: str = "https://api.nhtsa.gov/recalls/recallsByVehicle",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.recalls_url = recalls_url
        self.timeout = timeout
        self.transport = transport

    @classmethod
    def from_settings(cls, settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        return cls(
            base_url=settings.nhtsa_base_url,
            recalls_url=settings.nhtsa_recalls_url,
            transport=transport,
        )

    async def decode_vin(self, vin: str) -> Dict[str, Any]:
        """Decode VIN using NHTSA vPIC API"""
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                url = f"{self.base_url}/vehicles/decodevin/{vin}?format=json"
                response = await client.get(url)
                response.raise_for_status()
                data = response.json()

                results = data.get("Results", [])
                if not results:
                    return {"success": False, "error": "No results found"}

                # Flatten Variable/Value pairs
                vehicle_data = {}
                for item in results:
                    if item.get("Value") and item.get("Variable"):
                        vehicle_data[item["Variable"]] = item["Value"].strip()

                if not all(
                    vehicle_data.get(key) for key in ("Model Year", "Make", "Model")
                ):
                    return {
                        "success": False,
                        "error": vehicle_data.get("Error Text")
                        or "VIN did not match a known vehicle",
                    }

                displacement = vehicle_data.get("Displacement (L)")
                return {
                    "success": True,
                    "data": {
                        "vin": vin,
                        "year": vehicle_data["Model Year"],
                        "make": vehicle_data["Make"],
                        "model": vehicle_data["Model"],
                        "trim": vehicle_data.get("Trim"),
                        "engine": _engine_label(
                            displacement, vehicle_data.get("Engine Number of Cylinders")
                        ),
                        "body_class": vehicle_data.get("Body Class"),
                        "drive_type": vehicle_data.get("Drive Type"),
                        "fuel_type": vehicle_data.get("Fuel Type - Primary"),
                    },
                    "source": "nhtsa_vpic",
                }
            except Exception as e:
                logger.warning(f"VIN decode failed for {vin}: {e}")
                return {"success": False, "error": str(e)}

    async def get_recalls(self, vehicle: Vehicle) -> List[Dict[str, Any]]:
        """Recall campaigns for year/make/model. Empty list on any failure."""
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                params = {
                    "make": vehicle.make,
                    "model": vehicle.model,
                    "modelYear": vehicle.year,
                }
                response = await client.get(self.recalls_url, params=params)
                response.raise_for_status()
                data = response.json()

                return [
                    {
                        "campaign": item.get("NHTSACampaignNumber", ""),
                        "component": item.get("Component", ""),
                        "summary": item.get("Summary", ""),
                    }
                    for item in data.get("results", [])
                    if item.get("NHTSACampaignNumber")
                ]
            except Exception as e:
                logger.warning(f"Recall lookup failed for {vehicle.display}: {e}")
                return []


def _engine_label(displacement: Optional[str], cylinders: Optional[str]) -> Optional[str]:
    if not displacement:
        return None
    try:
        label = f"{float(displacement):.1f}L"
    except ValueError:
        label = f"{displacement}L"
    if cylinders:
        label += f" {cylinders}-cyl"
    return label
