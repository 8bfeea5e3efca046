import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Protocol
from urllib.parse import quote

import requests

from .config import EXPORT_TIMEOUT, FETCH_TIMEOUT, resolve_api_base
from .context import Sample, SampleDetail, Summary
from .errors import DataIntegrityError, NetworkError

LOGGER = logging.getLogger(__name__)


class SampleRepository(Protocol):
    """
    Everything the dashboard reads from or sends to the analysis service.
    Failures raise NetworkError (transport) or DataIntegrityError (shape).
    """

    async def list_samples(self) -> List[Sample]: ...

    async def get_sample(self, sample_id: str) -> SampleDetail: ...

    async def get_summary(self) -> Summary: ...

    async def get_pollution_aggregates(self) -> List[Dict[str, Any]]: ...

    async def export_csv(self) -> bytes: ...

    async def export_report(self, payload: Mapping[str, Any]) -> bytes: ...

    async def export_sample_report(self, payload: Mapping[str, Any]) -> bytes: ...


class HttpSampleRepository:
    """
    requests-backed repository. Calls run in a worker thread so the event
    loop keeps serving other flows while a request is pending.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        fetch_timeout: float = FETCH_TIMEOUT,
        export_timeout: float = EXPORT_TIMEOUT,
    ):
        self.base_url = (base_url or resolve_api_base()).rstrip("/")
        self.session = session or requests.Session()
        self.fetch_timeout = fetch_timeout
        self.export_timeout = export_timeout

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _request(
        self,
        operation: str,
        method: str,
        path: str,
        timeout: float,
        json_body: Optional[Mapping[str, Any]] = None,
    ) -> requests.Response:
        url = self._url(path)
        LOGGER.debug("%s %s (%s)", method, url, operation)
        try:
            response = self.session.request(method, url, json=json_body, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            LOGGER.warning("%s: %s %s failed: %s", operation, method, url, exc)
            raise NetworkError(operation, str(exc)) from exc
        return response

    def _get_json(self, operation: str, path: str) -> Any:
        response = self._request(operation, "GET", path, self.fetch_timeout)
        try:
            return response.json()
        except ValueError as exc:
            raise DataIntegrityError(f"{operation}: response is not JSON") from exc

    def _get_bytes(self, operation: str, path: str) -> bytes:
        return self._request(operation, "GET", path, self.export_timeout).content

    def _post_bytes(self, operation: str, path: str, payload: Mapping[str, Any]) -> bytes:
        return self._request(operation, "POST", path, self.export_timeout, json_body=payload).content

    async def list_samples(self) -> List[Sample]:
        body = await asyncio.to_thread(self._get_json, "list samples", "/api/samples")
        if not isinstance(body, list):
            raise DataIntegrityError("list samples: expected a JSON array")
        return [Sample.from_json(record) for record in body]

    async def get_sample(self, sample_id: str) -> SampleDetail:
        path = f"/api/samples/{quote(sample_id, safe='')}"
        body = await asyncio.to_thread(self._get_json, "get sample", path)
        return SampleDetail.from_json(body)

    async def get_summary(self) -> Summary:
        body = await asyncio.to_thread(self._get_json, "summary", "/api/summary")
        return Summary.from_json(body)

    async def get_pollution_aggregates(self) -> List[Dict[str, Any]]:
        body = await asyncio.to_thread(
            self._get_json, "pollution aggregates", "/api/charts/pollution-indices"
        )
        if not isinstance(body, list):
            raise DataIntegrityError("pollution aggregates: expected a JSON array")
        return body

    async def export_csv(self) -> bytes:
        return await asyncio.to_thread(self._get_bytes, "export csv", "/api/export/csv")

    async def export_report(self, payload: Mapping[str, Any]) -> bytes:
        return await asyncio.to_thread(self._post_bytes, "export report", "/api/export/pdf", payload)

    async def export_sample_report(self, payload: Mapping[str, Any]) -> bytes:
        return await asyncio.to_thread(
            self._post_bytes, "export sample report", "/api/export/sample-pdf", payload
        )
