"""REST client and source timetable provider."""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional

import requests

from .config import SchoolConfig
from .errors import DataUnavailable
from .grid import TimeGrid
from .master import build_source_grid, load_catalog
from .models import Catalog


class APIClient:
    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        *,
        api_key: str | None = None,
        dump_json: bool = False,
        offline: bool = False,
        json_dir: str | Path = "out/json",
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.api_key = api_key
        self.dump_json = dump_json
        self.offline = offline
        self.session = requests.Session()
        self.json_dir = Path(json_dir)
        if dump_json:
            self.json_dir.mkdir(parents=True, exist_ok=True)

    def _json_path(self, endpoint: str) -> Path:
        name = endpoint.strip("/").replace("/", "_") + ".json"
        return self.json_dir / name

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if self.api_key:
            headers["apikey"] = self.api_key
        return headers

    def get(self, endpoint: str, params: Optional[Dict[str, str]] = None) -> Any:
        if self.offline:
            try:
                with self._json_path(endpoint).open("r", encoding="utf-8") as f:
                    return json.load(f)
            except (OSError, ValueError) as exc:
                raise DataUnavailable(f"No saved data for {endpoint}: {exc}") from exc
        url = self.base_url + endpoint
        headers = self._headers()
        for attempt in range(4):
            try:
                resp = self.session.get(url, headers=headers, params=params, timeout=30)
                if resp.status_code == 401 and attempt == 0:
                    logging.info("Token expired, refreshing")
                    from . import auth  # msal is only loaded when signing in

                    self.token = auth.acquire_token()
                    if not self.token:
                        raise DataUnavailable(f"Not authorized for {endpoint}")
                    headers = self._headers()
                    continue
                if resp.status_code >= 500:
                    logging.warning("Server error %s from %s", resp.status_code, endpoint)
                    time.sleep(2**attempt)
                    continue
                resp.raise_for_status()
                data = resp.json()
                if self.dump_json:
                    with self._json_path(endpoint).open("w", encoding="utf-8") as f:
                        json.dump(data, f)
                return data
            except requests.RequestException as exc:
                logging.warning("Request error: %s", exc)
                time.sleep(2**attempt)
        raise DataUnavailable(f"Failed to fetch {endpoint}")


def _unwrap_master(payload: Any) -> Dict[str, Any]:
    # The table stores one row per published timetable with the grid in ``data``.
    if isinstance(payload, list):
        if not payload:
            return {}
        row = payload[0]
        payload = row["data"] if isinstance(row, dict) and "data" in row else row
    if not isinstance(payload, dict):
        raise DataUnavailable(f"Unexpected timetable payload: {type(payload).__name__}")
    return payload


class TimetableProvider:
    """Fetches the canonical grid; every call goes back to the source."""

    def __init__(self, client: APIClient, school_config: SchoolConfig) -> None:
        self.client = client
        self.school_config = school_config

    def fetch_catalog(self) -> Catalog:
        try:
            return load_catalog(
                subjects=self.client.get("/subjects"),
                teachers=self.client.get("/teachers"),
                classes=self.client.get("/classes"),
                classrooms=self.client.get("/classrooms"),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise DataUnavailable(f"Malformed catalog data: {exc}") from exc

    def fetch_timetable(
        self, scope: str | None = None, catalog: Catalog | None = None
    ) -> TimeGrid:
        if catalog is None:
            catalog = self.fetch_catalog()
        params = {"scope": scope} if scope else None
        raw = _unwrap_master(self.client.get("/timetable", params))
        return build_source_grid(raw, catalog, self.school_config)
