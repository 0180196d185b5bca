from fastapi import APIRouter, Depends, Response

from bloodbank.config import Settings
from bloodbank.dependencies import get_account_service, get_app_settings, get_current_user
from bloodbank.models import DonorRegistration, LoginRequest, OrganizationRegistration
from bloodbank.security import AUTH_COOKIE
from bloodbank.services.accounts import AccountService
from bloodbank.services.store import Document, serialize_document


router = APIRouter(tags=["Auth"])

# URL segment -> stored role
ORGANIZATION_PATHS = {"facility": "facility", "hospital": "hospital", "blood-lab": "blood_lab"}


@router.post("/register/donor", status_code=201)
def register_donor(payload: DonorRegistration, accounts: AccountService = Depends(get_account_service)) -> dict[str, object]:
    donor = accounts.register_donor(payload)
    return {"message": "Donor registered successfully", "user": serialize_document(donor)}


@router.post("/register/{organization_type}", status_code=201)
def register_organization(
    organization_type: str,
    payload: OrganizationRegistration,
    accounts: AccountService = Depends(get_account_service),
) -> dict[str, object]:
    role = ORGANIZATION_PATHS.get(organization_type, organization_type)
    organization = accounts.register_organization(role, payload)
    return {
        "message": "Registration received; an administrator will review it",
        "user": serialize_document(organization),
    }


@router.post("/login")
def login(
    payload: LoginRequest,
    response: Response,
    accounts: AccountService = Depends(get_account_service),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, object]:
    token, user = accounts.authenticate(payload.email, payload.password)
    response.set_cookie(
        key=AUTH_COOKIE,
        value=token,
        httponly=True,
        samesite="lax",
        secure=settings.is_serverless,
        max_age=settings.jwt_expires_minutes * 60,
    )
    return {"message": "Login successful", "token": token, "user": serialize_document(user)}


@router.post("/logout")
def logout(response: Response) -> dict[str, object]:
    response.delete_cookie(AUTH_COOKIE)
    return {"message": "Logout successful"}


@router.get("/me")
def me(user: Document = Depends(get_current_user)) -> dict[str, object]:
    return {"user": serialize_document(user)}
