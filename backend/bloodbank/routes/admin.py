from fastapi import APIRouter, Depends, Query

from bloodbank.dependencies import current_admin, get_admin_service
from bloodbank.models import BloodGroup, OrganizationStatusUpdate
from bloodbank.services.admin import AdminService
from bloodbank.services.store import Document, serialize_document


router = APIRouter(tags=["Admin"])


@router.get("/organizations")
def get_organizations(
    role: str | None = Query(default=None),
    status: str | None = Query(default=None),
    admin: Document = Depends(current_admin),
    admin_service: AdminService = Depends(get_admin_service),
) -> dict[str, object]:
    organizations = admin_service.list_organizations(role, status)
    return {"organizations": [serialize_document(organization) for organization in organizations]}


@router.patch("/organizations/{organization_id}")
def update_organization(
    organization_id: str,
    payload: OrganizationStatusUpdate,
    admin: Document = Depends(current_admin),
    admin_service: AdminService = Depends(get_admin_service),
) -> dict[str, object]:
    organization = admin_service.set_organization_status(organization_id, payload.status)
    return {"organization": serialize_document(organization)}


@router.get("/donors")
def get_donors(
    blood_group: BloodGroup | None = Query(default=None),
    city: str | None = Query(default=None),
    admin: Document = Depends(current_admin),
    admin_service: AdminService = Depends(get_admin_service),
) -> dict[str, object]:
    return {"donors": [serialize_document(donor) for donor in admin_service.list_donors(blood_group, city)]}


@router.delete("/users/{user_id}")
def delete_user(
    user_id: str,
    admin: Document = Depends(current_admin),
    admin_service: AdminService = Depends(get_admin_service),
) -> dict[str, object]:
    admin_service.delete_user(user_id, str(admin["_id"]))
    return {"message": "User deleted successfully"}


@router.get("/stats")
def get_stats(admin: Document = Depends(current_admin), admin_service: AdminService = Depends(get_admin_service)) -> dict[str, object]:
    return admin_service.stats()
