"""Session store backed by the host's ``/api/sessions`` endpoint."""

from __future__ import annotations

import json
import logging as py_logging
from typing import Protocol
from urllib.error import HTTPError, URLError
from urllib.parse import urlparse
from urllib.request import Request, urlopen

from forgetabs.errors import ExitCode, ForgeTabsError

logger = py_logging.getLogger(__name__)

DEFAULT_SESSION_URL = "http://127.0.0.1:8333/api/sessions"

HttpResponse = tuple[int, str]


class HttpRequester(Protocol):
    def __call__(
        self,
        method: str,
        url: str,
        body: bytes | None,
        headers: dict[str, str],
        timeout: float,
    ) -> HttpResponse: ...


def _validate_session_url(url: str) -> None:
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ForgeTabsError(
            f"Invalid session URL: {url}",
            code=ExitCode.CONFIG_ERROR,
            hint="Use an http(s) URL such as http://127.0.0.1:8333/api/sessions.",
        )


def _default_requester(
    method: str,
    url: str,
    body: bytes | None,
    headers: dict[str, str],
    timeout: float,
) -> HttpResponse:
    request = Request(url, data=body, headers=headers, method=method)
    try:
        with urlopen(request, timeout=timeout) as response:  # nosec B310
            status = int(getattr(response, "status", response.getcode()))
            return status, response.read().decode("utf-8")
    except HTTPError as exc:
        payload = ""
        if exc.fp is not None:
            payload = exc.read().decode("utf-8", errors="replace")
        return exc.code, payload
    except UnicodeDecodeError as exc:
        raise ForgeTabsError(
            "Session endpoint returned a non UTF-8 body.",
            code=ExitCode.PERSISTENCE_ERROR,
            hint=f"{method} {url}",
        ) from exc
    except (URLError, OSError) as exc:
        reason = getattr(exc, "reason", exc)
        raise ForgeTabsError(
            "Session store is unreachable.",
            code=ExitCode.PERSISTENCE_ERROR,
            hint=str(reason) or "Check that the terminal host is running.",
        ) from exc


class HttpSessionStore:
    def __init__(
        self,
        url: str = DEFAULT_SESSION_URL,
        *,
        requester: HttpRequester | None = None,
        timeout: float = 5.0,
    ) -> None:
        _validate_session_url(url)
        self.url = url
        self.timeout = timeout
        self._request = requester or _default_requester

    def load(self) -> object | None:
        status, payload = self._request("GET", self.url, None, {"Accept": "application/json"}, self.timeout)
        if status == 404:
            logger.debug("Session endpoint reported no session url=%s", self.url)
            return None
        self._check_status("GET", status, payload)
        if not payload.strip():
            return None
        try:
            return json.loads(payload)
        except json.JSONDecodeError as exc:
            raise ForgeTabsError(
                "Session endpoint returned invalid JSON.",
                code=ExitCode.PERSISTENCE_ERROR,
                hint=f"GET {self.url}",
            ) from exc

    def save(self, record: dict[str, object]) -> None:
        body = json.dumps(record, separators=(",", ":")).encode("utf-8")
        headers = {"Content-Type": "application/json"}
        status, payload = self._request("POST", self.url, body, headers, self.timeout)
        self._check_status("POST", status, payload)
        logger.debug("Session posted url=%s status=%s", self.url, status)

    def _check_status(self, method: str, status: int, payload: str) -> None:
        if 200 <= status < 300:
            return
        detail = payload.strip().splitlines()[0] if payload.strip() else ""
        raise ForgeTabsError(
            f"Session endpoint failed with HTTP {status}.",
            code=ExitCode.PERSISTENCE_ERROR,
            hint=f"{method} {self.url} {detail}".strip(),
        )
