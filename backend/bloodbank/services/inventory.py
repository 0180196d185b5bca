from __future__ import annotations

import logging
from datetime import datetime, timedelta

from bloodbank.config import Settings
from bloodbank.errors import Conflict, NotFound
from bloodbank.logging_utils import log_json
from bloodbank.models import BLOOD_GROUPS, DonationCreate
from bloodbank.services.donors import OPEN_APPOINTMENT_STATUSES, donor_eligibility
from bloodbank.services.store import (
    APPOINTMENTS,
    BLOOD_UNITS,
    DONATIONS,
    USERS,
    Document,
    DocumentStore,
    as_object_id,
    now_utc,
)


logger = logging.getLogger(__name__)

# Units in these states still count against shelf life.
SHELF_STATUSES = ["untested", "available"]


class InventoryService:
    """Blood units held by collection facilities.

    A donation creates one ``untested`` unit; a lab moves it to ``available``
    or ``discarded``; issuing to a hospital marks it ``issued``. Untested and
    available units past ``expires_at`` are swept to ``expired``.
    """

    def __init__(self, store: DocumentStore, settings: Settings) -> None:
        self.store = store
        self.shelf_life = timedelta(days=settings.unit_shelf_life_days)
        self.expiry_warning = timedelta(days=settings.expiry_warning_days)
        self.donation_interval_days = settings.donation_interval_days

    def list_appointments(self, facility_id: str, status: str | None = None) -> list[Document]:
        query: Document = {"facility_id": facility_id}
        if status:
            query["status"] = status
        return self.store.find(APPOINTMENTS, query, sort=[("scheduled_date", 1)])

    def update_appointment_status(self, facility_id: str, appointment_id: str, status: str) -> Document:
        appointment = self.store.get(APPOINTMENTS, appointment_id)
        if appointment is None or appointment["facility_id"] != facility_id:
            raise NotFound("Appointment not found")
        if appointment["status"] not in OPEN_APPOINTMENT_STATUSES:
            raise Conflict(f"Appointment is already {appointment['status']}")
        return self.store.update(APPOINTMENTS, appointment_id, {"status": status})

    def record_donation(self, facility_id: str, payload: DonationCreate, now: datetime | None = None) -> dict[str, Document]:
        now = now or now_utc()
        donor = self.store.get(USERS, payload.donor_id)
        if donor is None or donor.get("role") != "donor":
            raise NotFound("Donor not found")

        appointment = None
        if payload.appointment_id:
            appointment = self.store.get(APPOINTMENTS, payload.appointment_id)
            if (
                appointment is None
                or appointment["facility_id"] != facility_id
                or appointment["donor_id"] != payload.donor_id
            ):
                raise NotFound("Appointment not found")
            if appointment["status"] not in OPEN_APPOINTMENT_STATUSES:
                raise Conflict(f"Appointment is already {appointment['status']}")

        result = donor_eligibility(donor, now.date(), self.donation_interval_days)
        if not result.eligible:
            raise Conflict("; ".join(result.reasons))

        unit = self.store.insert(
            BLOOD_UNITS,
            {
                "facility_id": facility_id,
                "donor_id": payload.donor_id,
                "blood_group": donor["blood_group"],
                "volume_ml": payload.volume_ml,
                "status": "untested",
                "collected_at": now,
                "expires_at": now + self.shelf_life,
                "issued_to": None,
                "request_id": None,
                "discard_reason": None,
            },
        )
        donation = self.store.insert(
            DONATIONS,
            {
                "donor_id": payload.donor_id,
                "facility_id": facility_id,
                "unit_id": str(unit["_id"]),
                "blood_group": donor["blood_group"],
                "volume_ml": payload.volume_ml,
                "appointment_id": payload.appointment_id,
                "donated_at": now,
            },
        )
        self.store.update(USERS, payload.donor_id, {"last_donation_date": now.date().isoformat()})
        if appointment is not None:
            self.store.update(APPOINTMENTS, payload.appointment_id, {"status": "completed"})

        log_json(
            logger,
            "donation_recorded",
            facility_id=facility_id,
            donor_id=payload.donor_id,
            unit_id=str(unit["_id"]),
            blood_group=donor["blood_group"],
        )
        return {"donation": donation, "unit": unit}

    def list_units(self, facility_id: str, status: str | None = None, blood_group: str | None = None) -> list[Document]:
        query: Document = {"facility_id": facility_id}
        if status:
            query["status"] = status
        if blood_group:
            query["blood_group"] = blood_group
        return self.store.find(BLOOD_UNITS, query, sort=[("expires_at", 1)])

    def expire_units(self, facility_id: str | None = None, now: datetime | None = None) -> int:
        now = now or now_utc()
        query: Document = {"status": {"$in": SHELF_STATUSES}, "expires_at": {"$lte": now}}
        if facility_id:
            query["facility_id"] = facility_id
        expired = self.store.update_many(BLOOD_UNITS, query, {"status": "expired"})
        if expired:
            log_json(logger, "units_expired", facility_id=facility_id, count=expired)
        return expired

    def inventory_summary(self, facility_id: str, now: datetime | None = None) -> Document:
        now = now or now_utc()
        warning_cutoff = now + self.expiry_warning
        units = self.store.find(
            BLOOD_UNITS,
            {"facility_id": facility_id, "status": {"$in": SHELF_STATUSES}, "expires_at": {"$gt": now}},
        )

        levels = {group: {"blood_group": group, "available": 0, "expiring_soon": 0, "untested": 0} for group in BLOOD_GROUPS}
        for unit in units:
            level = levels[unit["blood_group"]]
            if unit["status"] == "untested":
                level["untested"] += 1
                continue
            level["available"] += 1
            if unit["expires_at"] <= warning_cutoff:
                level["expiring_soon"] += 1

        return {"facility_id": facility_id, "generated_at": now.isoformat(), "levels": list(levels.values())}

    def availability(self, blood_group: str | None = None, now: datetime | None = None) -> list[Document]:
        now = now or now_utc()
        facilities = self.store.find(USERS, {"role": "facility", "status": "approved"}, sort=[("name", 1)])
        query: Document = {"status": "available", "expires_at": {"$gt": now}}
        if blood_group:
            query["blood_group"] = blood_group

        counts: dict[str, dict[str, int]] = {}
        for unit in self.store.find(BLOOD_UNITS, query):
            per_group = counts.setdefault(unit["facility_id"], {})
            per_group[unit["blood_group"]] = per_group.get(unit["blood_group"], 0) + 1

        availability = []
        for facility in facilities:
            facility_id = str(facility["_id"])
            per_group = counts.get(facility_id, {})
            availability.append(
                {
                    "facility_id": facility_id,
                    "name": facility.get("name"),
                    "city": facility.get("city"),
                    "units": per_group,
                    "total": sum(per_group.values()),
                }
            )
        return availability

    def issue_units(
        self,
        facility_id: str,
        blood_group: str,
        count: int,
        hospital_id: str,
        request_id: str,
        now: datetime | None = None,
    ) -> list[str]:
        """Issue ``count`` units, earliest expiry first.

        Each unit is claimed with a conditional update on ``status``, so a
        unit taken by a concurrent request is skipped. If the facility cannot
        supply the full count, claimed units are released and ``Conflict`` is
        raised.
        """
        now = now or now_utc()
        candidates = self.store.find(
            BLOOD_UNITS,
            {
                "facility_id": facility_id,
                "blood_group": blood_group,
                "status": "available",
                "expires_at": {"$gt": now},
            },
            sort=[("expires_at", 1)],
        )

        issued: list[str] = []
        for unit in candidates:
            if len(issued) == count:
                break
            claimed = self.store.update_many(
                BLOOD_UNITS,
                {"_id": unit["_id"], "status": "available"},
                {"status": "issued", "issued_to": hospital_id, "request_id": request_id, "issued_at": now},
            )
            if claimed:
                issued.append(str(unit["_id"]))

        if len(issued) < count:
            if issued:
                self.store.update_many(
                    BLOOD_UNITS,
                    {"_id": {"$in": [as_object_id(unit_id) for unit_id in issued]}},
                    {"status": "available", "issued_to": None, "request_id": None, "issued_at": None},
                )
            raise Conflict(f"Insufficient stock: {len(issued)} of {count} {blood_group} units available")

        log_json(
            logger,
            "units_issued",
            facility_id=facility_id,
            hospital_id=hospital_id,
            request_id=request_id,
            blood_group=blood_group,
            count=count,
        )
        return issued
