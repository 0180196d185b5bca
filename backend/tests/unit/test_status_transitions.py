"""Unit tests for request and sample status changes that interleave."""

from datetime import timedelta

import pytest

from bloodbank.errors import Conflict
from bloodbank.models import LabResultCreate
from bloodbank.services.inventory import InventoryService
from bloodbank.services.lab import LabService
from bloodbank.services.requests import BloodRequestService
from bloodbank.services.store import BLOOD_REQUESTS, BLOOD_UNITS, LAB_TESTS, now_utc


@pytest.fixture
def facility(make_user):
    return make_user("facility")


@pytest.fixture
def hospital(make_user):
    return make_user("hospital")


@pytest.fixture
def requests(store, settings):
    return BloodRequestService(store, InventoryService(store, settings))


def add_unit(store, facility, status="available"):
    return store.insert(
        BLOOD_UNITS,
        {
            "facility_id": str(facility["_id"]),
            "blood_group": "O+",
            "status": status,
            "collected_at": now_utc() - timedelta(days=1),
            "expires_at": now_utc() + timedelta(days=20),
        },
    )


def add_request(store, facility, hospital, units=1):
    return store.insert(
        BLOOD_REQUESTS,
        {
            "hospital_id": str(hospital["_id"]),
            "facility_id": str(facility["_id"]),
            "blood_group": "O+",
            "units": units,
            "urgency": "normal",
            "status": "pending",
            "unit_ids": [],
            "created_at": now_utc(),
        },
    )


def interleave_once(monkeypatch, store, method, collection, action):
    """Run ``action`` the first time ``store.<method>`` touches ``collection``."""
    original = getattr(store, method)
    fired = []

    def wrapped(name, *args, **kwargs):
        result = original(name, *args, **kwargs)
        if name == collection and not fired:
            fired.append(True)
            action()
        return result

    monkeypatch.setattr(store, method, wrapped)


def test_cancel_while_units_are_being_allocated(monkeypatch, store, requests, facility, hospital):
    unit = add_unit(store, facility)
    request = add_request(store, facility, hospital)
    request_id = str(request["_id"])
    cancel_errors = []

    def cancel():
        with pytest.raises(Conflict) as excinfo:
            requests.cancel(str(hospital["_id"]), request_id)
        cancel_errors.append(str(excinfo.value))

    interleave_once(monkeypatch, store, "update_many", BLOOD_UNITS, cancel)

    fulfilled = requests.fulfill(str(facility["_id"]), request_id)
    assert fulfilled["status"] == "fulfilled"
    assert fulfilled["unit_ids"] == [str(unit["_id"])]
    assert cancel_errors == ["Request is already processing"]


def test_cancel_between_read_and_claim(monkeypatch, store, requests, facility, hospital):
    unit = add_unit(store, facility)
    request = add_request(store, facility, hospital)
    request_id = str(request["_id"])

    def cancel():
        requests.cancel(str(hospital["_id"]), request_id)

    interleave_once(monkeypatch, store, "get", BLOOD_REQUESTS, cancel)

    with pytest.raises(Conflict, match="already cancelled"):
        requests.fulfill(str(facility["_id"]), request_id)
    assert store.get(BLOOD_REQUESTS, request_id)["status"] == "cancelled"
    assert store.get(BLOOD_UNITS, str(unit["_id"]))["status"] == "available"


def test_reject_between_read_and_cancel(monkeypatch, store, requests, facility, hospital):
    request = add_request(store, facility, hospital)
    request_id = str(request["_id"])

    def reject():
        requests.reject(str(facility["_id"]), request_id, "Out of stock")

    interleave_once(monkeypatch, store, "get", BLOOD_REQUESTS, reject)

    with pytest.raises(Conflict, match="already rejected"):
        requests.cancel(str(hospital["_id"]), request_id)
    assert store.get(BLOOD_REQUESTS, request_id)["reason"] == "Out of stock"


def test_failed_allocation_releases_the_request(store, requests, facility, hospital):
    request = add_request(store, facility, hospital, units=2)
    add_unit(store, facility)

    with pytest.raises(Conflict, match="Insufficient stock"):
        requests.fulfill(str(facility["_id"]), str(request["_id"]))
    assert store.get(BLOOD_REQUESTS, str(request["_id"]))["status"] == "pending"
    requests.cancel(str(hospital["_id"]), str(request["_id"]))


def test_two_labs_record_the_same_sample(monkeypatch, store, facility, make_user):
    unit = add_unit(store, facility, status="untested")
    unit_id = str(unit["_id"])
    service = LabService(store)
    first_lab = make_user("blood_lab")
    second_lab = make_user("blood_lab")

    def other_lab_records():
        service.record_result(str(second_lab["_id"]), unit_id, LabResultCreate(hiv=True))

    interleave_once(monkeypatch, store, "get", BLOOD_UNITS, other_lab_records)

    with pytest.raises(Conflict):
        service.record_result(str(first_lab["_id"]), unit_id, LabResultCreate())
    assert store.get(BLOOD_UNITS, unit_id)["status"] == "discarded"
    assert [test["lab_id"] for test in store.find(LAB_TESTS)] == [str(second_lab["_id"])]
