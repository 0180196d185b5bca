from typing import Literal

from fastapi import APIRouter, Depends, Query

from bloodbank.dependencies import current_facility, get_inventory_service, get_request_service
from bloodbank.models import AppointmentStatusUpdate, BloodGroup, DonationCreate, InventorySummary, RequestRejection
from bloodbank.services.inventory import InventoryService
from bloodbank.services.requests import BloodRequestService
from bloodbank.services.store import Document, serialize_document


router = APIRouter(tags=["Facility"])

UnitStatus = Literal["untested", "available", "issued", "discarded", "expired"]


@router.get("/appointments")
def get_appointments(
    status: str | None = Query(default=None),
    facility: Document = Depends(current_facility),
    inventory: InventoryService = Depends(get_inventory_service),
) -> dict[str, object]:
    appointments = inventory.list_appointments(str(facility["_id"]), status)
    return {"appointments": [serialize_document(appointment) for appointment in appointments]}


@router.patch("/appointments/{appointment_id}")
def update_appointment(
    appointment_id: str,
    payload: AppointmentStatusUpdate,
    facility: Document = Depends(current_facility),
    inventory: InventoryService = Depends(get_inventory_service),
) -> dict[str, object]:
    appointment = inventory.update_appointment_status(str(facility["_id"]), appointment_id, payload.status)
    return {"appointment": serialize_document(appointment)}


@router.post("/donations", status_code=201)
def record_donation(
    payload: DonationCreate,
    facility: Document = Depends(current_facility),
    inventory: InventoryService = Depends(get_inventory_service),
) -> dict[str, object]:
    recorded = inventory.record_donation(str(facility["_id"]), payload)
    return {
        "donation": serialize_document(recorded["donation"]),
        "unit": serialize_document(recorded["unit"]),
    }


@router.get("/units")
def get_units(
    status: UnitStatus | None = Query(default=None),
    blood_group: BloodGroup | None = Query(default=None),
    facility: Document = Depends(current_facility),
    inventory: InventoryService = Depends(get_inventory_service),
) -> dict[str, object]:
    units = inventory.list_units(str(facility["_id"]), status, blood_group)
    return {"units": [serialize_document(unit) for unit in units]}


@router.post("/units/expire")
def expire_units(
    facility: Document = Depends(current_facility),
    inventory: InventoryService = Depends(get_inventory_service),
) -> dict[str, object]:
    return {"expired": inventory.expire_units(str(facility["_id"]))}


@router.get("/inventory", response_model=InventorySummary)
def get_inventory(
    facility: Document = Depends(current_facility),
    inventory: InventoryService = Depends(get_inventory_service),
) -> dict[str, object]:
    return inventory.inventory_summary(str(facility["_id"]))


@router.get("/requests")
def get_requests(
    status: str | None = Query(default=None),
    facility: Document = Depends(current_facility),
    requests: BloodRequestService = Depends(get_request_service),
) -> dict[str, object]:
    found = requests.list_for_facility(str(facility["_id"]), status)
    return {"requests": [serialize_document(request) for request in found]}


@router.post("/requests/{request_id}/fulfill")
def fulfill_request(
    request_id: str,
    facility: Document = Depends(current_facility),
    requests: BloodRequestService = Depends(get_request_service),
) -> dict[str, object]:
    fulfilled = requests.fulfill(str(facility["_id"]), request_id)
    return {"request": serialize_document(fulfilled)}


@router.post("/requests/{request_id}/reject")
def reject_request(
    request_id: str,
    payload: RequestRejection,
    facility: Document = Depends(current_facility),
    requests: BloodRequestService = Depends(get_request_service),
) -> dict[str, object]:
    rejected = requests.reject(str(facility["_id"]), request_id, payload.reason)
    return {"request": serialize_document(rejected)}
