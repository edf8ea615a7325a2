from __future__ import annotations

from http.client import HTTPException
from typing import Callable
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from .cli_shared import DEFAULT_TIMEOUT_SECONDS, TransportError

# (method, url, headers, body, timeout_seconds) -> (status, headers, body)
Transport = Callable[..., tuple[int, dict[str, str], bytes]]


def http_request(
    *,
    method: str,
    url: str,
    headers: dict[str, str],
    body: bytes | None = None,
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
) -> tuple[int, dict[str, str], bytes]:
    req = Request(url, data=body, method=str(method).upper())
    for k, v in headers.items():
        req.add_header(k, v)
    try:
        with urlopen(req, timeout=timeout_seconds) as resp:
            status = getattr(resp, "status", 200)
            hdrs = {k.lower(): v for k, v in dict(resp.headers).items()}
            data = resp.read()
            return int(status), hdrs, data
    except HTTPError as e:
        hdrs = {k.lower(): v for k, v in dict(e.headers or {}).items()}
        data = e.read() if hasattr(e, "read") else b""
        return int(getattr(e, "code", 0) or 0), hdrs, data
    except URLError as e:
        raise TransportError(f"http request failed: {method} {url}: {e.reason}") from e
    except (OSError, HTTPException) as e:
        raise TransportError(f"http request failed: {method} {url}: {e}") from e
