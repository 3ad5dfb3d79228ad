"""Minimal Supabase PostgREST client used by backend repositories only."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any
from urllib.error import HTTPError
from urllib.parse import urlencode
from urllib.request import Request, urlopen


@dataclass(slots=True)
class SupabaseSettings:
    url: str
    service_role_key: str


class SupabaseClient:
    def __init__(self, settings: SupabaseSettings) -> None:
        self.settings = settings

    def _headers(self, prefer: str) -> dict[str, str]:
        api_key = self.settings.service_role_key
        if not api_key:
            raise ValueError("Missing Supabase service role key")
        return {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Prefer": prefer,
        }

    def get_rows(
        self,
        *,
        table: str,
        query: dict[str, str | int] | list[tuple[str, str | int]],
    ) -> list[dict[str, Any]]:
        """Fetch rows from PostgREST matching ``query``."""

        encoded_query = urlencode(query, doseq=True)
        request = Request(
            url=f"{self.settings.url}/rest/v1/{table}?{encoded_query}",
            headers=self._headers("return=representation"),
            method="GET",
        )
        try:
            with urlopen(request) as response:  # noqa: S310 - URL comes from trusted env config
                return json.loads(response.read().decode("utf-8"))
        except HTTPError as exc:
            body = exc.read().decode("utf-8", errors="replace")[:500]
            raise RuntimeError(
                f"Supabase request failed with status {exc.code}: {body}"
            ) from exc

    def upsert_rows(
        self,
        *,
        table: str,
        rows: list[dict[str, Any]],
        on_conflict: str,
    ) -> list[dict[str, Any]]:
        """Insert rows, merging with existing rows sharing the ``on_conflict`` column."""

        request = Request(
            url=f"{self.settings.url}/rest/v1/{table}?{urlencode({'on_conflict': on_conflict})}",
            headers=self._headers("resolution=merge-duplicates,return=representation"),
            data=json.dumps(rows).encode("utf-8"),
            method="POST",
        )
        try:
            with urlopen(request) as response:  # noqa: S310 - URL comes from trusted env config
                payload = response.read().decode("utf-8")
                return json.loads(payload) if payload else []
        except HTTPError as exc:
            body = exc.read().decode("utf-8", errors="replace")[:500]
            raise RuntimeError(
                f"Supabase request failed with status {exc.code}: {body}"
            ) from exc
