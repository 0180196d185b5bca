from __future__ import annotations

import logging
from datetime import date

from bloodbank.config import Settings
from bloodbank.errors import AuthenticationFailed, Conflict, NotFound, PermissionDenied, ValidationFailed
from bloodbank.logging_utils import log_json
from bloodbank.models import DonorRegistration, OrganizationRegistration
from bloodbank.security import create_access_token, hash_password, verify_password
from bloodbank.services.eligibility import MIN_AGE, age_on
from bloodbank.services.store import USERS, Document, DocumentStore, now_utc


logger = logging.getLogger(__name__)

ORGANIZATION_ROLES = ("facility", "hospital", "blood_lab")
ROLES = ("donor", "admin", *ORGANIZATION_ROLES)


class AccountService:
    def __init__(self, store: DocumentStore, settings: Settings) -> None:
        self.store = store
        self.settings = settings

    def _ensure_email_free(self, email: str) -> None:
        if self.store.find_one(USERS, {"email": email}) is not None:
            raise Conflict("An account with this email already exists")

    def register_donor(self, payload: DonorRegistration, today: date | None = None) -> Document:
        email = payload.email.strip().lower()
        self._ensure_email_free(email)

        today = today or now_utc().date()
        if age_on(payload.date_of_birth, today) < MIN_AGE:
            raise ValidationFailed(f"Donor must be at least {MIN_AGE} years old")

        donor = self.store.insert(
            USERS,
            {
                "role": "donor",
                "email": email,
                "password_hash": hash_password(payload.password),
                "name": payload.name.strip(),
                "phone": payload.phone,
                "city": payload.city,
                "blood_group": payload.blood_group,
                "date_of_birth": payload.date_of_birth.isoformat(),
                "gender": payload.gender,
                "weight_kg": payload.weight_kg,
                "last_donation_date": None,
                "created_at": now_utc(),
            },
        )
        log_json(logger, "account_registered", role="donor", user_id=str(donor["_id"]))
        return donor

    def register_organization(self, role: str, payload: OrganizationRegistration) -> Document:
        if role not in ORGANIZATION_ROLES:
            raise NotFound(f"Unknown organization type '{role}'")
        email = payload.email.strip().lower()
        self._ensure_email_free(email)

        organization = self.store.insert(
            USERS,
            {
                "role": role,
                "email": email,
                "password_hash": hash_password(payload.password),
                "name": payload.name.strip(),
                "phone": payload.phone,
                "address": payload.address,
                "city": payload.city,
                "license_number": payload.license_number,
                "status": "pending",
                "created_at": now_utc(),
            },
        )
        log_json(logger, "account_registered", role=role, user_id=str(organization["_id"]))
        return organization

    def authenticate(self, email: str, password: str) -> tuple[str, Document]:
        user = self.store.find_one(USERS, {"email": email.strip().lower()})
        if user is None or not verify_password(password, user.get("password_hash", "")):
            raise AuthenticationFailed("Invalid email or password")

        if user["role"] in ORGANIZATION_ROLES and user.get("status") != "approved":
            raise PermissionDenied(f"Account is {user.get('status', 'pending')}; an administrator must approve it")

        token = create_access_token(str(user["_id"]), user["role"], self.settings)
        log_json(logger, "login", role=user["role"], user_id=str(user["_id"]))
        return token, user

    def get_user(self, user_id: str) -> Document | None:
        return self.store.get(USERS, user_id)

    def ensure_admin(self, email: str, password: str) -> bool:
        email = email.strip().lower()
        if self.store.find_one(USERS, {"email": email}) is not None:
            return False
        self.store.insert(
            USERS,
            {
                "role": "admin",
                "email": email,
                "password_hash": hash_password(password),
                "name": "Administrator",
                "phone": None,
                "city": None,
                "created_at": now_utc(),
            },
        )
        log_json(logger, "admin_created", email=email)
        return True
