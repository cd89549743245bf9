from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import httpx

from ..constants import Severity
from ..errors import VulnerabilityLookupError
from ..models import ResolvedPackage, Vulnerability
from .base import VulnerabilityLookup

OSV_QUERY_URL = "https://api.osv.dev/v1/query"
MAX_RETRIES = 2
BACKOFF_SECONDS = 1

# OSV ecosystem names differ from the manifest names we resolve.
_ECOSYSTEMS = {
    "npm": "npm",
    "pypi": "PyPI",
    "pip": "PyPI",
    "cargo": "crates.io",
    "go": "Go",
}


def _severity_from_score(score: float) -> Severity:
    if score >= 9.0:
        return Severity.CRITICAL
    if score >= 7.0:
        return Severity.HIGH
    if score >= 4.0:
        return Severity.MEDIUM
    if score > 0.0:
        return Severity.LOW
    return Severity.INFO


def severity_from_osv(vuln: Dict[str, Any]) -> Severity:
    """
    Map one OSV record to a Severity.

    Order of preference:
      1. database_specific.severity (GitHub advisories: LOW/MODERATE/HIGH/CRITICAL)
      2. a numeric CVSS base score in severity[].score
      3. Medium, for advisories that carry no rating at all
    """
    db_specific = vuln.get("database_specific")
    if isinstance(db_specific, dict) and isinstance(db_specific.get("severity"), str):
        label = db_specific["severity"]
        if label.strip():
            return Severity.parse(label)

    for entry in vuln.get("severity") or []:
        if not isinstance(entry, dict):
            continue
        try:
            return _severity_from_score(float(entry.get("score")))
        except (TypeError, ValueError):
            continue

    return Severity.MEDIUM


class OsvLookup(VulnerabilityLookup):
    """Queries the OSV.dev API for one package version at a time."""

    def __init__(
        self,
        *,
        api_url: str = OSV_QUERY_URL,
        timeout_seconds: float = 15.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_url = api_url
        self.timeout = timeout_seconds
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def lookup(self, package: ResolvedPackage) -> List[Vulnerability]:
        ecosystem = _ECOSYSTEMS.get(package.ecosystem.lower(), package.ecosystem)
        payload = {
            "version": package.version,
            "package": {"name": package.name, "ecosystem": ecosystem},
        }

        last_error = "unknown error"
        for attempt in range(MAX_RETRIES):
            try:
                response = await self.client.post(self.api_url, json=payload)
            except httpx.TimeoutException:
                last_error = f"timeout after {self.timeout}s"
            except httpx.HTTPError as exc:
                last_error = f"request failed: {exc}"
            else:
                if response.status_code == 200:
                    return self._parse(package, response)
                last_error = f"HTTP {response.status_code}"
                if response.status_code < 500 and response.status_code != 429:
                    break

            if attempt < MAX_RETRIES - 1:
                await asyncio.sleep(BACKOFF_SECONDS * (attempt + 1))

        raise VulnerabilityLookupError(package.name, package.version, last_error)

    @staticmethod
    def _parse(package: ResolvedPackage, response: httpx.Response) -> List[Vulnerability]:
        try:
            data = response.json()
        except ValueError as exc:
            raise VulnerabilityLookupError(package.name, package.version, f"invalid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise VulnerabilityLookupError(package.name, package.version, "unexpected response shape")

        vulns: List[Vulnerability] = []
        for item in data.get("vulns") or []:
            if not isinstance(item, dict) or not item.get("id"):
                continue
            vulns.append(
                Vulnerability(
                    id=str(item["id"]),
                    severity=severity_from_osv(item),
                    summary=str(item.get("summary") or ""),
                )
            )
        return vulns
