from datetime import date
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


BloodGroup = Literal["A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-"]
BLOOD_GROUPS: tuple[str, ...] = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class EndpointMap(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    auth: str
    donor: str
    facility: str
    admin: str
    blood_lab: str = Field(alias="bloodLab")
    hospital: str


class ApiDescriptor(BaseModel):
    message: str
    version: str
    endpoints: EndpointMap


class DonorRegistration(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: str = Field(pattern=EMAIL_PATTERN)
    password: str = Field(min_length=8)
    phone: str = Field(min_length=5, max_length=20)
    blood_group: BloodGroup
    date_of_birth: date
    gender: Literal["male", "female", "other"] | None = None
    weight_kg: float = Field(gt=0, le=400)
    city: str | None = None


class OrganizationRegistration(BaseModel):
    name: str = Field(min_length=1, max_length=160)
    email: str = Field(pattern=EMAIL_PATTERN)
    password: str = Field(min_length=8)
    phone: str = Field(min_length=5, max_length=20)
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    license_number: str = Field(min_length=1)


class LoginRequest(BaseModel):
    email: str
    password: str


class DonorProfileUpdate(BaseModel):
    phone: str | None = Field(default=None, min_length=5, max_length=20)
    city: str | None = None
    weight_kg: float | None = Field(default=None, gt=0, le=400)


class EligibilityResponse(BaseModel):
    eligible: bool
    reasons: list[str]
    next_eligible_date: date | None = None


class AppointmentCreate(BaseModel):
    facility_id: str
    scheduled_date: date
    time_slot: str | None = None


class AppointmentStatusUpdate(BaseModel):
    status: Literal["confirmed", "cancelled"]


class DonationCreate(BaseModel):
    donor_id: str
    volume_ml: int = Field(default=450, ge=200, le=550)
    appointment_id: str | None = None


class LabResultCreate(BaseModel):
    hiv: bool = False
    hbv: bool = False
    hcv: bool = False
    syphilis: bool = False
    malaria: bool = False
    confirmed_blood_group: BloodGroup | None = None
    notes: str | None = None


class BloodRequestCreate(BaseModel):
    facility_id: str
    blood_group: BloodGroup
    units: int = Field(ge=1, le=50)
    urgency: Literal["normal", "urgent", "emergency"] = "normal"
    patient_reference: str | None = None
    required_by: date | None = None


class RequestRejection(BaseModel):
    reason: str = Field(min_length=1)


class OrganizationStatusUpdate(BaseModel):
    status: Literal["approved", "rejected"]


class InventoryLevel(BaseModel):
    blood_group: BloodGroup
    available: int
    expiring_soon: int
    untested: int


class InventorySummary(BaseModel):
    facility_id: str
    generated_at: str
    levels: list[InventoryLevel]
