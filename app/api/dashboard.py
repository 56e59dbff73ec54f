"""
Dashboard pages - vehicle entry, VIN decode and the rendered repair guide.
"""

from fastapi import APIRouter, Depends, Form
from fastapi.responses import HTMLResponse, RedirectResponse
from typing import Optional
from urllib.parse import quote
from context import AppContext, get_context
from models.vehicle import VIN_LENGTH, Vehicle, is_valid_vin, normalize_vin
from services.guide_renderer import GuideRenderer
from services.nhtsa import VinDecodeError
import logging

logger = logging.getLogger(__name__)

router = APIRouter()

# Used when the form is submitted without a task
GENERAL_TASK = "general maintenance and inspection"


def _renderer(context: AppContext) -> GuideRenderer:
    return GuideRenderer(
        affiliate_tag=context.settings.affiliate_tag, app_title=context.settings.app_title
    )


@router.get("/", response_class=HTMLResponse)
async def dashboard(context: AppContext = Depends(get_context)):
    return HTMLResponse(_renderer(context).render_dashboard())


@router.post("/decode-vin", response_class=HTMLResponse)
async def decode_vin(vin: str = Form(""), context: AppContext = Depends(get_context)):
    renderer = _renderer(context)

    # Rejected here, before any lookup is made
    if not is_valid_vin(vin):
        return HTMLResponse(
            renderer.render_dashboard(
                {"vin": vin}, error=f"VIN must be exactly {VIN_LENGTH} characters"
            ),
            status_code=400,
        )

    try:
        decoded = await context.guide_service.decode_vin(vin)
    except VinDecodeError as e:
        return HTMLResponse(
            renderer.render_dashboard({"vin": vin}, error=f"Could not decode VIN: {e}"),
            status_code=502,
        )

    details = ", ".join(part for part in (decoded.trim, decoded.engine) if part)
    notice = f"Decoded {decoded.display}" + (f" ({details})" if details else "")
    form = {
        "vin": normalize_vin(vin),
        "year": decoded.year,
        "make": decoded.make,
        "model": decoded.model,
    }
    return HTMLResponse(renderer.render_dashboard(form, notice=notice))


@router.post("/repair")
async def start_repair(
    year: str = Form(""),
    make: str = Form(""),
    model: str = Form(""),
    task: str = Form(""),
    context: AppContext = Depends(get_context),
):
    form = {"year": year, "make": make, "model": model, "task": task}
    vehicle_fields = (year.strip(), make.strip(), model.strip())

    error = None
    if not all(vehicle_fields):
        error = "Year, make and model are all required"
    elif any("/" in field for field in vehicle_fields):
        error = "Year, make and model cannot contain '/'"
    if error:
        return HTMLResponse(_renderer(context).render_dashboard(form, error=error), status_code=400)

    # The task is kept verbatim; the {task:path} route takes any '/' it contains
    segments = [*vehicle_fields, task.strip()] if task.strip() else list(vehicle_fields)
    path = "/".join(quote(segment, safe="") for segment in segments)
    return RedirectResponse(url=f"/repair/{path}", status_code=303)


@router.get("/repair/{year}/{make}/{model}", response_class=HTMLResponse)
async def general_guide(year: str, make: str, model: str, context: AppContext = Depends(get_context)):
    return await _guide_page(context, Vehicle(year=year, make=make, model=model), None)


@router.get("/repair/{year}/{make}/{model}/{task:path}", response_class=HTMLResponse)
async def repair_guide(
    year: str, make: str, model: str, task: str, context: AppContext = Depends(get_context)
):
    return await _guide_page(context, Vehicle(year=year, make=make, model=model), task.strip() or None)


async def _guide_page(context: AppContext, vehicle: Vehicle, task: Optional[str]) -> HTMLResponse:
    task_text = task or GENERAL_TASK
    renderer = _renderer(context)

    try:
        context.require_provider()
        guide = await context.guide_service.generate_full_repair_guide(vehicle, task_text)
    except Exception as e:
        # No partial guide - back to the form with the reason
        logger.exception(f"Guide page failed for {vehicle.display} / {task_text}")
        form = {"year": vehicle.year, "make": vehicle.make, "model": vehicle.model, "task": task}
        return HTMLResponse(
            renderer.render_dashboard(form, error=f"Could not generate guide: {e}"),
            status_code=502,
        )

    return HTMLResponse(renderer.render_guide(guide))
