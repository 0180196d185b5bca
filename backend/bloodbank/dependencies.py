from __future__ import annotations

from collections.abc import Callable

from fastapi import Depends, Request

from bloodbank.config import Settings
from bloodbank.errors import AuthenticationFailed, PermissionDenied
from bloodbank.security import AUTH_COOKIE, decode_access_token
from bloodbank.services.accounts import ORGANIZATION_ROLES, AccountService
from bloodbank.services.admin import AdminService
from bloodbank.services.donors import DonorService
from bloodbank.services.inventory import InventoryService
from bloodbank.services.lab import LabService
from bloodbank.services.requests import BloodRequestService
from bloodbank.services.store import USERS, Document, DocumentStore


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def _request_token(request: Request) -> str | None:
    authorization = request.headers.get("authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(AUTH_COOKIE)


def get_current_user(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    store: DocumentStore = Depends(get_store),
) -> Document:
    token = _request_token(request)
    if not token:
        raise AuthenticationFailed("No token provided")

    claims = decode_access_token(token, settings)
    user = store.get(USERS, claims["sub"])
    if user is None:
        raise AuthenticationFailed("Account no longer exists")

    request.state.user_id = str(user["_id"])
    return user


def require_role(*roles: str) -> Callable[..., Document]:
    def dependency(user: Document = Depends(get_current_user)) -> Document:
        if user["role"] not in roles:
            raise PermissionDenied("You do not have access to this resource")
        if user["role"] in ORGANIZATION_ROLES and user.get("status") != "approved":
            raise PermissionDenied("Account is not approved")
        return user

    return dependency


current_donor = require_role("donor")
current_facility = require_role("facility")
current_hospital = require_role("hospital")
current_blood_lab = require_role("blood_lab")
current_admin = require_role("admin")


def get_account_service(
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> AccountService:
    return AccountService(store, settings)


def get_donor_service(
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> DonorService:
    return DonorService(store, settings.donation_interval_days)


def get_inventory_service(
    store: DocumentStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> InventoryService:
    return InventoryService(store, settings)


def get_request_service(
    store: DocumentStore = Depends(get_store),
    inventory: InventoryService = Depends(get_inventory_service),
) -> BloodRequestService:
    return BloodRequestService(store, inventory)


def get_lab_service(store: DocumentStore = Depends(get_store)) -> LabService:
    return LabService(store)


def get_admin_service(store: DocumentStore = Depends(get_store)) -> AdminService:
    return AdminService(store)
