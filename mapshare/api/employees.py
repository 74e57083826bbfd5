"""Employee GPS tracking."""

from fastapi import APIRouter, Depends, Query

from mapshare.api.deps import get_location_service
from mapshare.api.schemas import EmployeeLocation
from mapshare.services.locations import LocationService

router = APIRouter(tags=["employees"])


@router.post("/employee-location")
async def post_employee_location(
    body: EmployeeLocation,
    locations: LocationService = Depends(get_location_service),
):
    """Save the latest position and append it to the capped history."""
    await locations.record_employee(body.employee_id, body.latitude, body.longitude)
    return {"ok": True}


@router.get("/employee-location-list")
async def list_employee_locations(locations: LocationService = Depends(get_location_service)):
    return {"employees": await locations.list_employees()}


@router.get("/employee-location/{employee_id}/history")
async def employee_location_history(
    employee_id: str,
    limit: int = Query(default=100, ge=1, le=1000),
    locations: LocationService = Depends(get_location_service),
):
    history = await locations.employee_history(employee_id, limit)
    return {"employeeId": employee_id, "history": history}
