from __future__ import annotations

import json

import httpx
import pytest

from vibesafe.constants import Severity
from vibesafe.errors import VulnerabilityLookupError
from vibesafe.models import ResolvedPackage
from vibesafe.vulndb import osv
from vibesafe.vulndb.osv import OsvLookup, severity_from_osv

LODASH = ResolvedPackage("lodash", "4.17.20")


def _lookup(handler) -> OsvLookup:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return OsvLookup(api_url="https://osv.test/v1/query", client=client)


@pytest.mark.parametrize(
    ("record", "expected"),
    [
        ({"database_specific": {"severity": "MODERATE"}}, Severity.MEDIUM),
        ({"database_specific": {"severity": "CRITICAL"}}, Severity.CRITICAL),
        ({"severity": [{"type": "CVSS_V3", "score": "7.5"}]}, Severity.HIGH),
        ({"severity": [{"type": "CVSS_V3", "score": "9.8"}]}, Severity.CRITICAL),
        ({"severity": [{"type": "CVSS_V3", "score": "CVSS:3.1/AV:N"}]}, Severity.MEDIUM),
        ({}, Severity.MEDIUM),
    ],
)
def test_severity_from_osv(record: dict, expected: Severity) -> None:
    assert severity_from_osv(record) == expected


@pytest.mark.anyio
async def test_lookup_sends_query_and_parses_vulns() -> None:
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(
            200,
            json={
                "vulns": [
                    {"id": "GHSA-35jh", "summary": "Command injection", "database_specific": {"severity": "HIGH"}},
                    {"id": "GHSA-p6mc", "database_specific": {"severity": "MODERATE"}},
                    {"summary": "no id, dropped"},
                ]
            },
        )

    lookup = _lookup(handler)
    vulns = await lookup.lookup(LODASH)
    await lookup.client.aclose()

    assert seen == [{"version": "4.17.20", "package": {"name": "lodash", "ecosystem": "npm"}}]
    assert [(v.id, v.severity) for v in vulns] == [
        ("GHSA-35jh", Severity.HIGH),
        ("GHSA-p6mc", Severity.MEDIUM),
    ]
    assert vulns[0].summary == "Command injection"


@pytest.mark.anyio
async def test_lookup_maps_python_ecosystem() -> None:
    seen: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={})

    lookup = _lookup(handler)
    assert await lookup.lookup(ResolvedPackage("django", "3.2.0", "pypi", "requirements.txt")) == []
    assert seen[0]["package"]["ecosystem"] == "PyPI"


@pytest.mark.anyio
async def test_client_error_is_not_retried() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(400, json={"message": "bad"})

    with pytest.raises(VulnerabilityLookupError) as excinfo:
        await _lookup(handler).lookup(LODASH)
    assert calls == 1
    assert excinfo.value.reason == "HTTP 400"


@pytest.mark.anyio
async def test_server_error_is_retried(monkeypatch: pytest.MonkeyPatch) -> None:
    calls = 0
    sleeps: list[float] = []

    async def fake_sleep(delay: float) -> None:
        sleeps.append(delay)

    monkeypatch.setattr(osv.asyncio, "sleep", fake_sleep)

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        if calls == 1:
            return httpx.Response(503)
        return httpx.Response(200, json={"vulns": []})

    assert await _lookup(handler).lookup(LODASH) == []
    assert calls == 2
    assert sleeps == [osv.BACKOFF_SECONDS]


@pytest.mark.anyio
async def test_transport_error_raises_after_retries(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_sleep(delay: float) -> None:
        return None

    monkeypatch.setattr(osv.asyncio, "sleep", fake_sleep)

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(VulnerabilityLookupError) as excinfo:
        await _lookup(handler).lookup(LODASH)
    assert "connection refused" in excinfo.value.reason
    assert excinfo.value.name == "lodash"


@pytest.mark.anyio
async def test_invalid_json_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>")

    with pytest.raises(VulnerabilityLookupError):
        await _lookup(handler).lookup(LODASH)


@pytest.mark.anyio
async def test_aclose_leaves_injected_client_open() -> None:
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200, json={})))
    lookup = OsvLookup(client=client)
    await lookup.aclose()
    assert not client.is_closed
    await client.aclose()
