from datetime import date

from fastapi import APIRouter, Depends, Query

from bloodbank.dependencies import current_donor, get_donor_service
from bloodbank.models import AppointmentCreate, DonorProfileUpdate, EligibilityResponse
from bloodbank.services.donors import DonorService
from bloodbank.services.store import Document, serialize_document


router = APIRouter(tags=["Donor"])


@router.get("/profile")
def get_profile(donor: Document = Depends(current_donor)) -> dict[str, object]:
    return {"donor": serialize_document(donor)}


@router.put("/profile")
def update_profile(
    payload: DonorProfileUpdate,
    donor: Document = Depends(current_donor),
    donors: DonorService = Depends(get_donor_service),
) -> dict[str, object]:
    updated = donors.update_profile(str(donor["_id"]), payload)
    return {"donor": serialize_document(updated)}


@router.get("/eligibility", response_model=EligibilityResponse)
def get_eligibility(
    on: date | None = Query(default=None),
    donor: Document = Depends(current_donor),
    donors: DonorService = Depends(get_donor_service),
) -> EligibilityResponse:
    result = donors.eligibility(donor, on)
    return EligibilityResponse(
        eligible=result.eligible,
        reasons=result.reasons,
        next_eligible_date=result.next_eligible_date,
    )


@router.get("/donations")
def get_donations(donor: Document = Depends(current_donor), donors: DonorService = Depends(get_donor_service)) -> dict[str, object]:
    donations = donors.donation_history(str(donor["_id"]))
    return {"donations": [serialize_document(donation) for donation in donations]}


@router.get("/facilities")
def get_facilities(donor: Document = Depends(current_donor), donors: DonorService = Depends(get_donor_service)) -> dict[str, object]:
    return {"facilities": [serialize_document(facility) for facility in donors.list_facilities()]}


@router.post("/appointments", status_code=201)
def book_appointment(
    payload: AppointmentCreate,
    donor: Document = Depends(current_donor),
    donors: DonorService = Depends(get_donor_service),
) -> dict[str, object]:
    appointment = donors.book_appointment(donor, payload)
    return {"appointment": serialize_document(appointment)}


@router.get("/appointments")
def get_appointments(donor: Document = Depends(current_donor), donors: DonorService = Depends(get_donor_service)) -> dict[str, object]:
    appointments = donors.list_appointments(str(donor["_id"]))
    return {"appointments": [serialize_document(appointment) for appointment in appointments]}


@router.delete("/appointments/{appointment_id}")
def cancel_appointment(
    appointment_id: str,
    donor: Document = Depends(current_donor),
    donors: DonorService = Depends(get_donor_service),
) -> dict[str, object]:
    appointment = donors.cancel_appointment(str(donor["_id"]), appointment_id)
    return {"appointment": serialize_document(appointment)}
