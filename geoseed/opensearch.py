import json
import urllib.error
import urllib.request
from typing import Any, Dict, Optional, Tuple

from geoseed.config import Settings
from geoseed.errors import SearchTransportError


class OpenSearchClient:
    def __init__(self, settings: Settings) -> None:
        self.base_url = settings.os_url.rstrip("/")
        self.timeout_sec = settings.timeout_sec

    def _open(self, request: urllib.request.Request) -> Tuple[int, str]:
        try:
            if self.timeout_sec:
                response = urllib.request.urlopen(request, timeout=self.timeout_sec)
            else:
                response = urllib.request.urlopen(request)
            with response:
                return response.status, response.read().decode("utf-8")
        except urllib.error.HTTPError as exc:
            return exc.code, exc.read().decode("utf-8")
        except urllib.error.URLError as exc:
            raise SearchTransportError(f"OpenSearch request failed: {exc}") from exc
        except OSError as exc:
            raise SearchTransportError(f"OpenSearch request failed: {exc}") from exc

    def request(self, method: str, path: str, body: Optional[Any] = None) -> Tuple[int, str]:
        url = f"{self.base_url}{path}"
        data = None
        headers: Dict[str, str] = {}
        if body is not None:
            data = json.dumps(body).encode("utf-8")
            headers["Content-Type"] = "application/json"
        return self._open(urllib.request.Request(url, data=data, headers=headers, method=method))

    def request_raw(self, method: str, path: str, payload: bytes, headers: Dict[str, str]) -> Tuple[int, str]:
        url = f"{self.base_url}{path}"
        return self._open(urllib.request.Request(url, data=payload, headers=headers, method=method))

    def index_status(self, index_name: str) -> int:
        status, _ = self.request("HEAD", f"/{index_name}")
        return status

    def create_index(self, index_name: str) -> Tuple[int, str]:
        return self.request("PUT", f"/{index_name}")

    def put_mapping(self, index_name: str, mapping: Dict[str, Any]) -> Tuple[int, str]:
        return self.request("PUT", f"/{index_name}/_mapping", mapping)

    def bulk(self, index_name: str, payload: bytes) -> Tuple[int, str]:
        return self.request_raw(
            "POST",
            f"/{index_name}/_bulk",
            payload,
            {"Content-Type": "application/x-ndjson"},
        )

    def refresh(self, index_name: str) -> None:
        status, body = self.request("POST", f"/{index_name}/_refresh")
        if status >= 300:
            raise SearchTransportError(f"Refresh failed ({status}): {body}", stage="verify")

    def count(self, index_name: str) -> int:
        status, body = self.request("GET", f"/{index_name}/_count")
        if status >= 300:
            raise SearchTransportError(f"Count failed ({status}): {body}", stage="verify")
        return json.loads(body).get("count", 0)
