from __future__ import annotations

import logging

from bloodbank.errors import Conflict, NotFound, ValidationFailed
from bloodbank.logging_utils import log_json
from bloodbank.services.accounts import ORGANIZATION_ROLES, ROLES
from bloodbank.services.store import BLOOD_REQUESTS, BLOOD_UNITS, USERS, Document, DocumentStore


logger = logging.getLogger(__name__)

UNIT_STATUSES = ("untested", "available", "issued", "discarded", "expired")


class AdminService:
    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    def list_organizations(self, role: str | None = None, status: str | None = None) -> list[Document]:
        if role is not None and role not in ORGANIZATION_ROLES:
            raise ValidationFailed(f"role must be one of {', '.join(ORGANIZATION_ROLES)}")
        query: Document = {"role": role} if role else {"role": {"$in": list(ORGANIZATION_ROLES)}}
        if status:
            query["status"] = status
        return self.store.find(USERS, query, sort=[("created_at", -1)])

    def set_organization_status(self, organization_id: str, status: str) -> Document:
        organization = self.store.get(USERS, organization_id)
        if organization is None or organization.get("role") not in ORGANIZATION_ROLES:
            raise NotFound("Organization not found")
        log_json(
            logger,
            "organization_status_changed",
            organization_id=organization_id,
            role=organization["role"],
            status=status,
        )
        return self.store.update(USERS, organization_id, {"status": status})

    def list_donors(self, blood_group: str | None = None, city: str | None = None) -> list[Document]:
        query: Document = {"role": "donor"}
        if blood_group:
            query["blood_group"] = blood_group
        if city:
            query["city"] = city
        return self.store.find(USERS, query, sort=[("name", 1)])

    def delete_user(self, user_id: str, acting_admin_id: str) -> None:
        if user_id == acting_admin_id:
            raise Conflict("Administrators cannot delete their own account")
        if not self.store.delete(USERS, user_id):
            raise NotFound("User not found")
        log_json(logger, "user_deleted", user_id=user_id, by=acting_admin_id)

    def stats(self) -> Document:
        return {
            "users": {role: self.store.count(USERS, {"role": role}) for role in ROLES},
            "units": {status: self.store.count(BLOOD_UNITS, {"status": status}) for status in UNIT_STATUSES},
            "pending_requests": self.store.count(BLOOD_REQUESTS, {"status": "pending"}),
        }
