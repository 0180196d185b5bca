from fastapi import APIRouter, Depends, Query

from bloodbank.dependencies import current_hospital, get_inventory_service, get_request_service
from bloodbank.models import BloodGroup, BloodRequestCreate
from bloodbank.services.inventory import InventoryService
from bloodbank.services.requests import BloodRequestService
from bloodbank.services.store import Document, serialize_document


router = APIRouter(tags=["Hospital"])


@router.post("/requests", status_code=201)
def create_request(
    payload: BloodRequestCreate,
    hospital: Document = Depends(current_hospital),
    requests: BloodRequestService = Depends(get_request_service),
) -> dict[str, object]:
    return {"request": serialize_document(requests.create(hospital, payload))}


@router.get("/requests")
def get_requests(
    status: str | None = Query(default=None),
    hospital: Document = Depends(current_hospital),
    requests: BloodRequestService = Depends(get_request_service),
) -> dict[str, object]:
    found = requests.list_for_hospital(str(hospital["_id"]), status)
    return {"requests": [serialize_document(request) for request in found]}


@router.delete("/requests/{request_id}")
def cancel_request(
    request_id: str,
    hospital: Document = Depends(current_hospital),
    requests: BloodRequestService = Depends(get_request_service),
) -> dict[str, object]:
    return {"request": serialize_document(requests.cancel(str(hospital["_id"]), request_id))}


@router.get("/availability")
def get_availability(
    blood_group: BloodGroup | None = Query(default=None),
    hospital: Document = Depends(current_hospital),
    inventory: InventoryService = Depends(get_inventory_service),
) -> dict[str, object]:
    return {"facilities": inventory.availability(blood_group)}
