from __future__ import annotations

import logging
from datetime import datetime

from bloodbank.errors import Conflict, NotFound
from bloodbank.logging_utils import log_json
from bloodbank.models import BloodRequestCreate
from bloodbank.services.inventory import InventoryService
from bloodbank.services.store import BLOOD_REQUESTS, USERS, Document, DocumentStore, now_utc


logger = logging.getLogger(__name__)

URGENCY_RANK = {"emergency": 0, "urgent": 1, "normal": 2}


def by_urgency(requests: list[Document]) -> list[Document]:
    # Stable: within the same urgency the store order (oldest first) is kept.
    return sorted(requests, key=lambda request: URGENCY_RANK.get(request.get("urgency"), len(URGENCY_RANK)))


class BloodRequestService:
    def __init__(self, store: DocumentStore, inventory: InventoryService) -> None:
        self.store = store
        self.inventory = inventory

    def create(self, hospital: Document, payload: BloodRequestCreate) -> Document:
        facility = self.store.get(USERS, payload.facility_id)
        if facility is None or facility.get("role") != "facility" or facility.get("status") != "approved":
            raise NotFound("Facility not found")

        now = now_utc()
        request = self.store.insert(
            BLOOD_REQUESTS,
            {
                "hospital_id": str(hospital["_id"]),
                "hospital_name": hospital.get("name"),
                "facility_id": payload.facility_id,
                "facility_name": facility.get("name"),
                "blood_group": payload.blood_group,
                "units": payload.units,
                "urgency": payload.urgency,
                "patient_reference": payload.patient_reference,
                "required_by": payload.required_by.isoformat() if payload.required_by else None,
                "status": "pending",
                "unit_ids": [],
                "reason": None,
                "created_at": now,
                "updated_at": now,
            },
        )
        log_json(
            logger,
            "blood_request_created",
            request_id=str(request["_id"]),
            hospital_id=request["hospital_id"],
            facility_id=payload.facility_id,
            blood_group=payload.blood_group,
            units=payload.units,
            urgency=payload.urgency,
        )
        return request

    def list_for_hospital(self, hospital_id: str, status: str | None = None) -> list[Document]:
        query: Document = {"hospital_id": hospital_id}
        if status:
            query["status"] = status
        return self.store.find(BLOOD_REQUESTS, query, sort=[("created_at", -1)])

    def list_for_facility(self, facility_id: str, status: str | None = None) -> list[Document]:
        query: Document = {"facility_id": facility_id}
        if status:
            query["status"] = status
        return by_urgency(self.store.find(BLOOD_REQUESTS, query, sort=[("created_at", 1)]))

    def _transition(
        self,
        request_id: str,
        owner_field: str,
        owner_id: str,
        changes: Document,
        from_status: str = "pending",
    ) -> Document:
        """Move an owned request out of ``from_status``.

        The write is conditioned on the status still being ``from_status``,
        so of two concurrent transitions only one succeeds.
        """
        request = self.store.get(BLOOD_REQUESTS, request_id)
        if request is None or request[owner_field] != owner_id:
            raise NotFound("Request not found")
        if request["status"] == from_status:
            updated = self.store.update(BLOOD_REQUESTS, request_id, changes, conditions={"status": from_status})
            if updated is not None:
                return updated
            request = self.store.get(BLOOD_REQUESTS, request_id)
            if request is None:
                raise NotFound("Request not found")
        raise Conflict(f"Request is already {request['status']}")

    def cancel(self, hospital_id: str, request_id: str) -> Document:
        return self._transition(request_id, "hospital_id", hospital_id, {"status": "cancelled", "updated_at": now_utc()})

    def reject(self, facility_id: str, request_id: str, reason: str) -> Document:
        rejected = self._transition(
            request_id,
            "facility_id",
            facility_id,
            {"status": "rejected", "reason": reason, "updated_at": now_utc()},
        )
        log_json(logger, "blood_request_rejected", request_id=request_id, facility_id=facility_id)
        return rejected

    def fulfill(self, facility_id: str, request_id: str, now: datetime | None = None) -> Document:
        now = now or now_utc()
        # Held as "processing" while units are allocated; cancel and reject see it as taken.
        request = self._transition(request_id, "facility_id", facility_id, {"status": "processing", "updated_at": now})
        try:
            unit_ids = self.inventory.issue_units(
                facility_id=facility_id,
                blood_group=request["blood_group"],
                count=request["units"],
                hospital_id=request["hospital_id"],
                request_id=request_id,
                now=now,
            )
        except Exception:
            self.store.update(
                BLOOD_REQUESTS,
                request_id,
                {"status": "pending", "updated_at": now},
                conditions={"status": "processing"},
            )
            raise
        return self.store.update(
            BLOOD_REQUESTS,
            request_id,
            {"status": "fulfilled", "unit_ids": unit_ids, "updated_at": now},
            conditions={"status": "processing"},
        )
