from __future__ import annotations

import logging
from datetime import datetime

from bloodbank.errors import Conflict, NotFound
from bloodbank.logging_utils import log_json
from bloodbank.models import LabResultCreate
from bloodbank.services.store import BLOOD_UNITS, LAB_TESTS, Document, DocumentStore, now_utc


logger = logging.getLogger(__name__)

SCREENING_MARKERS = ("hiv", "hbv", "hcv", "syphilis", "malaria")


class LabService:
    """Screening of collected units before they can be issued."""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    def pending_samples(self, facility_id: str | None = None, now: datetime | None = None) -> list[Document]:
        now = now or now_utc()
        query: Document = {"status": "untested", "expires_at": {"$gt": now}}
        if facility_id:
            query["facility_id"] = facility_id
        return self.store.find(BLOOD_UNITS, query, sort=[("collected_at", 1)])

    def record_result(self, lab_id: str, unit_id: str, payload: LabResultCreate, now: datetime | None = None) -> Document:
        now = now or now_utc()
        unit = self.store.get(BLOOD_UNITS, unit_id)
        if unit is None:
            raise NotFound("Sample not found")
        if unit["status"] != "untested":
            raise Conflict(f"Sample is already {unit['status']}")
        if unit["expires_at"] <= now:
            raise Conflict("Sample has expired")

        reactive = [marker for marker in SCREENING_MARKERS if getattr(payload, marker)]
        group_mismatch = (
            payload.confirmed_blood_group is not None and payload.confirmed_blood_group != unit["blood_group"]
        )
        passed = not reactive and not group_mismatch

        reasons = [f"reactive: {', '.join(reactive)}"] if reactive else []
        if group_mismatch:
            reasons.append(f"blood group mismatch: recorded {unit['blood_group']}, tested {payload.confirmed_blood_group}")

        if passed:
            changes: Document = {"status": "available", "tested_at": now}
        else:
            changes = {"status": "discarded", "discard_reason": "; ".join(reasons), "tested_at": now}
        claimed = self.store.update(
            BLOOD_UNITS,
            unit_id,
            changes,
            conditions={"status": "untested", "expires_at": {"$gt": now}},
        )
        if claimed is None:
            raise Conflict("Sample is no longer awaiting a result")

        test = self.store.insert(
            LAB_TESTS,
            {
                "unit_id": unit_id,
                "lab_id": lab_id,
                "facility_id": unit["facility_id"],
                **{marker: getattr(payload, marker) for marker in SCREENING_MARKERS},
                "confirmed_blood_group": payload.confirmed_blood_group,
                "notes": payload.notes,
                "passed": passed,
                "tested_at": now,
            },
        )

        log_json(logger, "sample_tested", unit_id=unit_id, lab_id=lab_id, passed=passed)
        return test

    def history(self, lab_id: str) -> list[Document]:
        return self.store.find(LAB_TESTS, {"lab_id": lab_id}, sort=[("tested_at", -1)])
