from fastapi import APIRouter, Depends, Query

from bloodbank.dependencies import current_blood_lab, get_lab_service
from bloodbank.models import LabResultCreate
from bloodbank.services.lab import LabService
from bloodbank.services.store import Document, serialize_document


router = APIRouter(tags=["Blood Lab"])


@router.get("/samples")
def get_samples(
    facility_id: str | None = Query(default=None),
    lab: Document = Depends(current_blood_lab),
    lab_service: LabService = Depends(get_lab_service),
) -> dict[str, object]:
    samples = lab_service.pending_samples(facility_id)
    return {"samples": [serialize_document(sample) for sample in samples]}


@router.post("/samples/{unit_id}/result", status_code=201)
def record_result(
    unit_id: str,
    payload: LabResultCreate,
    lab: Document = Depends(current_blood_lab),
    lab_service: LabService = Depends(get_lab_service),
) -> dict[str, object]:
    test = lab_service.record_result(str(lab["_id"]), unit_id, payload)
    return {"test": serialize_document(test)}


@router.get("/tests")
def get_tests(lab: Document = Depends(current_blood_lab), lab_service: LabService = Depends(get_lab_service)) -> dict[str, object]:
    return {"tests": [serialize_document(test) for test in lab_service.history(str(lab["_id"]))]}
