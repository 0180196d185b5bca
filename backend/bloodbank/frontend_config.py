"""API base URL resolution for the browser client.

The client build reads ``VITE_API_URL`` and its production flag; this module
applies the same rules so the resolved endpoint map can be produced (and
checked) from Python. Run as a script to print the map as JSON.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from types import MappingProxyType


DEV_API_BASE_URL = "http://localhost:5000"

API_GROUPS = {
    "AUTH": "auth",
    "DONOR": "donor",
    "FACILITY": "facility",
    "HOSPITAL": "hospital",
    "BLOOD_LAB": "blood-lab",
    "ADMIN": "admin",
}


def resolve_api_base_url(api_url: str | None, production: bool) -> str:
    if api_url:
        return api_url
    if production:
        # Empty base: requests go to the page's own origin.
        return ""
    return DEV_API_BASE_URL


def build_api_endpoints(base_url: str) -> Mapping[str, str]:
    return MappingProxyType({key: f"{base_url}/api/{group}" for key, group in API_GROUPS.items()})


def is_production(environ: Mapping[str, str]) -> bool:
    if environ.get("MODE", "").lower() == "production":
        return True
    return environ.get("PROD", "").lower() in {"1", "true", "yes"}


def api_endpoints_from_env(environ: Mapping[str, str] | None = None) -> Mapping[str, str]:
    environ = os.environ if environ is None else environ
    base_url = resolve_api_base_url(environ.get("VITE_API_URL"), is_production(environ))
    return build_api_endpoints(base_url)


def main() -> int:
    print(json.dumps(dict(api_endpoints_from_env()), indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
