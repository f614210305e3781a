# kezekshi_dashboard/core/http.py
import base64
import json
from typing import Any, Dict, Optional

import httpx
from tenacity import retry, stop_after_attempt, wait_fixed, retry_if_exception_type

from kezekshi_dashboard.core.config import settings
from kezekshi_dashboard.core.errors import KezekshiAPIError
from kezekshi_dashboard.core.logging import log

class KezekshiHTTP:
    def __init__(self, base_url: str | None = None, transport: httpx.AsyncBaseTransport | None = None):
        # httpx requires all four timeout parts (or a single default)
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.KEZEKSHI_API_BASE,
            transport=transport,
            timeout=httpx.Timeout(
                connect=settings.HTTP_CONNECT_TIMEOUT,
                read=settings.HTTP_READ_TIMEOUT,
                write=settings.HTTP_READ_TIMEOUT,
                pool=settings.HTTP_CONNECT_TIMEOUT,
            ),
        )

    async def close(self):
        await self._client.aclose()

    def headers(self, bearer: str | None, accept: str = "application/json", with_body: bool = False) -> Dict[str, str]:
        h = {"accept": accept}
        if bearer:
            h["Authorization"] = bearer if bearer.lower().startswith("bearer ") else f"Bearer {bearer}"
        if with_body:
            h["Content-Type"] = "application/json"
        return h

    @retry(stop=stop_after_attempt(settings.RETRY_ATTEMPTS), wait=wait_fixed(0.4),
           retry=retry_if_exception_type(httpx.TransportError), reraise=True)
    async def get(self, path: str, bearer: str | None, params: Any = None,
                  accept: str = "application/json") -> httpx.Response:
        log.debug("kezekshi_http_request", method="GET", path=path, has_auth=bool(bearer))
        try:
            response = await self._client.get(path, params=params, headers=self.headers(bearer, accept))
        except httpx.TransportError as e:
            log.error("kezekshi_http_error", method="GET", path=path, error=str(e), error_type=type(e).__name__)
            raise
        log.debug("kezekshi_http_response", method="GET", path=path, status_code=response.status_code)
        return response

    async def post(self, path: str, bearer: str | None, data: Any = None, params: Any = None,
                   accept: str = "application/json", raw_body: str | None = None) -> httpx.Response:
        log.debug("kezekshi_http_request", method="POST", path=path, has_auth=bool(bearer))
        headers = self.headers(bearer, accept, with_body=data is not None or raw_body is not None)
        if data is not None:
            response = await self._client.post(path, params=params, json=data, headers=headers)
        else:
            response = await self._client.post(path, params=params, content=raw_body or "", headers=headers)
        log.debug("kezekshi_http_response", method="POST", path=path, status_code=response.status_code)
        return response

    async def get_json(self, path: str, bearer: str | None, params: Any = None) -> Any:
        return decode_json(await self.get(path, bearer, params))

    async def post_json(self, path: str, bearer: str | None, data: Any = None, params: Any = None,
                        raw_body: str | None = None, lenient: bool = False) -> Any:
        return decode_json(await self.post(path, bearer, data, params, raw_body=raw_body), lenient=lenient)

def decode_json(response: httpx.Response, lenient: bool = False) -> Any:
    """Parse a JSON reply, raising KezekshiAPIError for upstream failures.

    With ``lenient`` an unreadable body is treated as ``None`` and only the
    status code decides whether the call failed.
    """
    text = response.text
    try:
        data = json.loads(text)
    except ValueError:
        if not lenient:
            log.warning("kezekshi_invalid_json", status_code=response.status_code, url=str(response.request.url))
            raise KezekshiAPIError(response.status_code, "Invalid JSON response", raw=text)
        data = None

    if not response.is_success:
        log.warning("kezekshi_api_error", status_code=response.status_code, url=str(response.request.url), detail=data)
        raise KezekshiAPIError.from_payload(response.status_code, data)
    return data

def decode_photo(response: httpx.Response) -> Optional[Any]:
    """Photo endpoints answer with an image, a JSON wrapper or a bare base64 string."""
    if response.status_code == 404:
        return None

    content_type = response.headers.get("content-type", "")
    if response.is_success and "image" in content_type:
        mime = content_type.split(";")[0].strip()
        encoded = base64.b64encode(response.content).decode("ascii")
        return f"data:{mime};base64,{encoded}"

    text = response.text
    if not response.is_success:
        try:
            data = json.loads(text)
        except ValueError:
            data = {"raw": text}
        raise KezekshiAPIError.from_payload(response.status_code, data)

    try:
        return json.loads(text)
    except ValueError:
        return text
