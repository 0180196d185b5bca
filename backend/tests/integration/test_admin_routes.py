"""Integration tests for /api/admin: approvals, user management and stats."""

import pytest

from bloodbank.services.store import BLOOD_REQUESTS, BLOOD_UNITS, USERS


@pytest.fixture
def admin(make_user):
    return make_user("admin")


def test_admin_only(client, make_user, auth_headers):
    donor = make_user("donor")
    assert client.get("/api/admin/stats", headers=auth_headers(donor)).status_code == 403


def test_list_organizations(client, admin, make_user, auth_headers):
    facility = make_user("facility", status="pending")
    hospital = make_user("hospital")
    make_user("donor")
    headers = auth_headers(admin)

    listed = client.get("/api/admin/organizations", headers=headers).json()["organizations"]
    assert {item["id"] for item in listed} == {str(facility["_id"]), str(hospital["_id"])}

    pending = client.get("/api/admin/organizations", params={"status": "pending"}, headers=headers).json()
    assert [item["id"] for item in pending["organizations"]] == [str(facility["_id"])]

    hospitals = client.get("/api/admin/organizations", params={"role": "hospital"}, headers=headers).json()
    assert [item["id"] for item in hospitals["organizations"]] == [str(hospital["_id"])]

    assert client.get("/api/admin/organizations", params={"role": "donor"}, headers=headers).status_code == 400


def test_approve_lets_organization_log_in(client, admin, make_user, auth_headers, password):
    lab = make_user("blood_lab", status="pending")
    login = {"email": lab["email"], "password": password}
    assert client.post("/api/auth/login", json=login).status_code == 403

    res = client.patch(f"/api/admin/organizations/{lab['_id']}", headers=auth_headers(admin), json={"status": "approved"})
    assert res.status_code == 200
    assert res.json()["organization"]["status"] == "approved"
    assert client.post("/api/auth/login", json=login).status_code == 200


def test_reject_organization(client, admin, make_user, auth_headers, store):
    hospital = make_user("hospital", status="pending")
    client.patch(f"/api/admin/organizations/{hospital['_id']}", headers=auth_headers(admin), json={"status": "rejected"})
    assert store.get(USERS, str(hospital["_id"]))["status"] == "rejected"


def test_status_update_targets_organizations_only(client, admin, make_user, auth_headers):
    donor = make_user("donor")
    headers = auth_headers(admin)
    res = client.patch(f"/api/admin/organizations/{donor['_id']}", headers=headers, json={"status": "approved"})
    assert res.status_code == 404
    res = client.patch(f"/api/admin/organizations/{donor['_id']}", headers=headers, json={"status": "maybe"})
    assert res.status_code == 422


def test_list_donors(client, admin, make_user, auth_headers):
    make_user("donor", name="Zed", blood_group="A+")
    make_user("donor", name="Amy", blood_group="A+", city="Shelbyville")
    make_user("donor", name="Bob", blood_group="O-")
    headers = auth_headers(admin)

    donors = client.get("/api/admin/donors", headers=headers).json()["donors"]
    assert [item["name"] for item in donors] == ["Amy", "Bob", "Zed"]
    assert all("password_hash" not in item for item in donors)

    a_pos = client.get("/api/admin/donors", params={"blood_group": "A+", "city": "Springfield"}, headers=headers).json()
    assert [item["name"] for item in a_pos["donors"]] == ["Zed"]


def test_delete_user(client, admin, make_user, auth_headers, store):
    donor = make_user("donor")
    headers = auth_headers(admin)
    res = client.delete(f"/api/admin/users/{donor['_id']}", headers=headers)
    assert res.status_code == 200
    assert store.get(USERS, str(donor["_id"])) is None

    assert client.delete(f"/api/admin/users/{donor['_id']}", headers=headers).status_code == 404
    assert client.delete(f"/api/admin/users/{admin['_id']}", headers=headers).status_code == 409


def test_stats(client, admin, make_user, auth_headers, store):
    make_user("donor")
    make_user("donor")
    make_user("facility")
    store.insert(BLOOD_UNITS, {"status": "available"})
    store.insert(BLOOD_UNITS, {"status": "untested"})
    store.insert(BLOOD_UNITS, {"status": "available"})
    store.insert(BLOOD_REQUESTS, {"status": "pending"})
    store.insert(BLOOD_REQUESTS, {"status": "fulfilled"})

    stats = client.get("/api/admin/stats", headers=auth_headers(admin)).json()
    assert stats["users"] == {"donor": 2, "admin": 1, "facility": 1, "hospital": 0, "blood_lab": 0}
    assert stats["units"] == {"untested": 1, "available": 2, "issued": 0, "discarded": 0, "expired": 0}
    assert stats["pending_requests"] == 1
