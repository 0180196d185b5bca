from __future__ import annotations

import logging
from datetime import date

from bloodbank.errors import Conflict, NotFound, ValidationFailed
from bloodbank.logging_utils import log_json
from bloodbank.models import AppointmentCreate, DonorProfileUpdate
from bloodbank.services.eligibility import EligibilityResult, check_eligibility
from bloodbank.services.store import APPOINTMENTS, DONATIONS, USERS, Document, DocumentStore, now_utc


logger = logging.getLogger(__name__)

OPEN_APPOINTMENT_STATUSES = ["scheduled", "confirmed"]


def donor_eligibility(donor: Document, on: date, interval_days: int) -> EligibilityResult:
    last_donation = donor.get("last_donation_date")
    return check_eligibility(
        date_of_birth=date.fromisoformat(donor["date_of_birth"]),
        weight_kg=float(donor["weight_kg"]),
        last_donation=date.fromisoformat(last_donation) if last_donation else None,
        on=on,
        interval_days=interval_days,
    )


class DonorService:
    def __init__(self, store: DocumentStore, donation_interval_days: int) -> None:
        self.store = store
        self.donation_interval_days = donation_interval_days

    def update_profile(self, donor_id: str, payload: DonorProfileUpdate) -> Document:
        changes = payload.model_dump(exclude_none=True)
        if not changes:
            raise ValidationFailed("No profile fields supplied")
        donor = self.store.update(USERS, donor_id, changes)
        if donor is None:
            raise NotFound("Donor not found")
        return donor

    def eligibility(self, donor: Document, on: date | None = None) -> EligibilityResult:
        return donor_eligibility(donor, on or now_utc().date(), self.donation_interval_days)

    def donation_history(self, donor_id: str) -> list[Document]:
        return self.store.find(DONATIONS, {"donor_id": donor_id}, sort=[("donated_at", -1)])

    def list_facilities(self) -> list[Document]:
        return self.store.find(USERS, {"role": "facility", "status": "approved"}, sort=[("name", 1)])

    def book_appointment(self, donor: Document, payload: AppointmentCreate, today: date | None = None) -> Document:
        today = today or now_utc().date()
        if payload.scheduled_date < today:
            raise ValidationFailed("Appointments cannot be booked in the past")

        facility = self.store.get(USERS, payload.facility_id)
        if facility is None or facility.get("role") != "facility" or facility.get("status") != "approved":
            raise NotFound("Facility not found")

        result = self.eligibility(donor, payload.scheduled_date)
        if not result.eligible:
            raise Conflict("; ".join(result.reasons))

        donor_id = str(donor["_id"])
        open_appointment = self.store.find_one(
            APPOINTMENTS,
            {"donor_id": donor_id, "status": {"$in": OPEN_APPOINTMENT_STATUSES}},
        )
        if open_appointment is not None:
            raise Conflict("Donor already has an open appointment")

        appointment = self.store.insert(
            APPOINTMENTS,
            {
                "donor_id": donor_id,
                "donor_name": donor.get("name"),
                "blood_group": donor.get("blood_group"),
                "facility_id": payload.facility_id,
                "facility_name": facility.get("name"),
                "scheduled_date": payload.scheduled_date.isoformat(),
                "time_slot": payload.time_slot,
                "status": "scheduled",
                "created_at": now_utc(),
            },
        )
        log_json(
            logger,
            "appointment_booked",
            appointment_id=str(appointment["_id"]),
            donor_id=donor_id,
            facility_id=payload.facility_id,
        )
        return appointment

    def list_appointments(self, donor_id: str) -> list[Document]:
        return self.store.find(APPOINTMENTS, {"donor_id": donor_id}, sort=[("scheduled_date", -1)])

    def cancel_appointment(self, donor_id: str, appointment_id: str) -> Document:
        appointment = self.store.get(APPOINTMENTS, appointment_id)
        if appointment is None or appointment["donor_id"] != donor_id:
            raise NotFound("Appointment not found")
        if appointment["status"] not in OPEN_APPOINTMENT_STATUSES:
            raise Conflict(f"Appointment is already {appointment['status']}")
        return self.store.update(APPOINTMENTS, appointment_id, {"status": "cancelled"})
