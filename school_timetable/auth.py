"""Bearer tokens for the timetable REST gateway.

The gateway always receives the project API key (see ``APIClient``). A
bearer token is added on top when one is configured: either a JWT pasted
into ``SCHOOL_TIMETABLE_ACCESS_TOKEN`` or, for schools whose staff sign in
with Microsoft 365, an Entra ID token obtained through MSAL. The gateway
must be set up to trust that tenant as a third-party issuer.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional

import msal

DEFAULT_AUTHORITY = "https://login.microsoftonline.com/organizations"
CACHE_PATH = Path(os.path.expanduser("~/.cache/school_timetable/msal_cache.bin"))


def _scopes() -> list[str]:
    raw = os.getenv("SCHOOL_TIMETABLE_SCOPES", "")
    return [s for s in raw.replace(",", " ").split() if s]


def _load_cache() -> msal.SerializableTokenCache:
    cache = msal.SerializableTokenCache()
    if CACHE_PATH.exists():
        try:
            cache.deserialize(CACHE_PATH.read_text())
        except ValueError as exc:  # pragma: no cover - corruption is rare
            logging.warning("Failed to deserialize cache: %s", exc)
    return cache


def _save_cache(cache: msal.SerializableTokenCache) -> None:
    if not cache.has_state_changed:
        return
    CACHE_PATH.parent.mkdir(parents=True, exist_ok=True)
    CACHE_PATH.write_text(cache.serialize())


def acquire_token() -> Optional[str]:
    # A pasted token wins; useful for service accounts and CI.
    token = os.getenv("SCHOOL_TIMETABLE_ACCESS_TOKEN")
    if token:
        return token

    client_id = os.getenv("SCHOOL_TIMETABLE_CLIENT_ID")
    if not client_id:
        logging.info("No sign-in configured, using the API key only")
        return None
    authority = os.getenv("SCHOOL_TIMETABLE_AUTHORITY", DEFAULT_AUTHORITY)
    scopes = _scopes()

    cache = _load_cache()
    app = msal.PublicClientApplication(client_id, authority=authority, token_cache=cache)

    accounts = app.get_accounts()
    result = app.acquire_token_silent(scopes, account=accounts[0]) if accounts else None

    if not result:
        flow = app.initiate_device_flow(scopes=scopes)
        if "user_code" not in flow:
            logging.error("Device flow init failed: %s", flow.get("error_description"))
        else:
            print(flow["message"])
            result = app.acquire_token_by_device_flow(flow)

    if result and "access_token" in result:
        _save_cache(cache)
        return result["access_token"]

    raise RuntimeError("Could not obtain access token (set SCHOOL_TIMETABLE_ACCESS_TOKEN)")
