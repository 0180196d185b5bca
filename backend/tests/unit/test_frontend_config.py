"""Unit tests for the browser client's API base URL resolution."""

import pytest

from bloodbank.frontend_config import (
    API_GROUPS,
    DEV_API_BASE_URL,
    api_endpoints_from_env,
    build_api_endpoints,
    resolve_api_base_url,
)


def test_override_is_returned_verbatim():
    assert resolve_api_base_url("https://api.example.com", production=True) == "https://api.example.com"
    assert resolve_api_base_url("https://api.example.com", production=False) == "https://api.example.com"


def test_production_without_override_is_same_origin():
    assert resolve_api_base_url(None, production=True) == ""


def test_development_default():
    assert resolve_api_base_url(None, production=False) == DEV_API_BASE_URL == "http://localhost:5000"


def test_endpoint_map_has_six_groups():
    endpoints = build_api_endpoints("https://api.example.com")
    assert set(endpoints) == {"AUTH", "DONOR", "FACILITY", "HOSPITAL", "BLOOD_LAB", "ADMIN"}
    assert endpoints["BLOOD_LAB"] == "https://api.example.com/api/blood-lab"
    assert len(API_GROUPS) == 6


def test_endpoint_map_is_read_only():
    endpoints = build_api_endpoints("")
    with pytest.raises(TypeError):
        endpoints["AUTH"] = "elsewhere"


@pytest.mark.parametrize(
    ("environ", "prefix"),
    [
        ({"VITE_API_URL": "https://api.example.com"}, "https://api.example.com/api/"),
        ({"MODE": "production"}, "/api/"),
        ({"PROD": "true"}, "/api/"),
        ({"MODE": "development"}, "http://localhost:5000/api/"),
        ({}, "http://localhost:5000/api/"),
    ],
)
def test_endpoints_from_env(environ, prefix):
    endpoints = api_endpoints_from_env(environ)
    assert all(url.startswith(prefix) for url in endpoints.values())
