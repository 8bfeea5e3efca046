"""Tests for the HTTP repository against a stubbed requests session."""

import asyncio
import json

import pytest
import requests

from conftest import detail_record, sample_record
from water_dashboard.errors import DataIntegrityError, NetworkError
from water_dashboard.repository import HttpSampleRepository


def _response(status=200, body=None, content=None):
    response = requests.Response()
    response.status_code = status
    response.reason = "OK" if status < 400 else "Error"
    response.url = "http://service.test"
    response._content = content if content is not None else json.dumps(body).encode("utf-8")
    return response


class StubSession:
    def __init__(self, routes=None, error=None):
        self.routes = routes or {}
        self.error = error
        self.calls = []

    def request(self, method, url, json=None, timeout=None):
        self.calls.append({"method": method, "url": url, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.routes[(method, url)]


def _repo(session):
    return HttpSampleRepository("http://service.test/", session=session, fetch_timeout=5, export_timeout=20)


def test_list_samples_parses_records():
    session = StubSession(
        {("GET", "http://service.test/api/samples"): _response(body=[sample_record("WS-1"), sample_record("WS-2", "unsafe")])}
    )
    samples = asyncio.run(_repo(session).list_samples())
    assert [s.sample_id for s in samples] == ["WS-1", "WS-2"]
    assert {s.category for s in samples} <= {"safe", "moderate", "unsafe"}
    assert session.calls[0]["timeout"] == 5


def test_list_samples_rejects_unknown_category():
    record = sample_record("WS-1")
    record["category"] = "toxic"
    session = StubSession({("GET", "http://service.test/api/samples"): _response(body=[record])})
    with pytest.raises(DataIntegrityError):
        asyncio.run(_repo(session).list_samples())


def test_get_sample_quotes_id():
    session = StubSession({("GET", "http://service.test/api/samples/WS%2F7"): _response(body=detail_record("WS/7"))})
    detail = asyncio.run(_repo(session).get_sample("WS/7"))
    assert detail.sample_id == "WS/7"


def test_summary_and_aggregates():
    session = StubSession(
        {
            ("GET", "http://service.test/api/summary"): _response(
                body={"categories": [{"_id": "safe", "count": 3}], "totalSamples": 3}
            ),
            ("GET", "http://service.test/api/charts/pollution-indices"): _response(
                body=[{"_id": "SiteA", "avgHPI": 12.5, "avgMI": 3.1, "avgCD": 0.8}]
            ),
        }
    )
    repo = _repo(session)
    assert asyncio.run(repo.get_summary()).total_samples == 3
    assert asyncio.run(repo.get_pollution_aggregates())[0]["_id"] == "SiteA"


def test_export_report_posts_payload_and_returns_bytes():
    session = StubSession({("POST", "http://service.test/api/export/pdf"): _response(content=b"%PDF-1.7")})
    payload = {"samples": [], "charts": {"pollutionChart": None, "pieChart": None, "mapSnapshot": None}}
    data = asyncio.run(_repo(session).export_report(payload))
    assert data == b"%PDF-1.7"
    assert session.calls[0]["json"] == payload
    assert session.calls[0]["timeout"] == 20


def test_export_sample_report_and_csv():
    session = StubSession(
        {
            ("POST", "http://service.test/api/export/sample-pdf"): _response(content=b"%PDF"),
            ("GET", "http://service.test/api/export/csv"): _response(content=b"a,b\n"),
        }
    )
    repo = _repo(session)
    assert asyncio.run(repo.export_sample_report({"sample": {}, "charts": {}})) == b"%PDF"
    assert asyncio.run(repo.export_csv()) == b"a,b\n"


def test_http_error_becomes_network_error_with_operation():
    session = StubSession({("GET", "http://service.test/api/summary"): _response(status=500, body={})})
    with pytest.raises(NetworkError) as excinfo:
        asyncio.run(_repo(session).get_summary())
    assert excinfo.value.operation == "summary"


def test_connection_error_becomes_network_error():
    session = StubSession(error=requests.ConnectionError("refused"))
    with pytest.raises(NetworkError) as excinfo:
        asyncio.run(_repo(session).export_csv())
    assert excinfo.value.operation == "export csv"
    assert len(session.calls) == 1


def test_non_json_body_is_integrity_error():
    session = StubSession({("GET", "http://service.test/api/samples"): _response(content=b"<html>")})
    with pytest.raises(DataIntegrityError):
        asyncio.run(_repo(session).list_samples())


def test_base_url_from_env(monkeypatch):
    monkeypatch.setenv("WATER_API_BASE", "https://water.example.org/")
    assert HttpSampleRepository(session=StubSession()).base_url == "https://water.example.org"
