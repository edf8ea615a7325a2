from __future__ import annotations

import json
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any


class DcliError(Exception):
    pass


class UsageError(DcliError):
    pass


class ValidationError(UsageError):
    """Raised for input problems detected before any request is sent."""


class MissingID(ValidationError):
    def __init__(self, resource_type: str = "") -> None:
        self.resource_type = resource_type
        label = f" for {resource_type!r}" if resource_type else ""
        super().__init__(f"resource id is required{label}")


class UnknownPermission(ValidationError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"unknown permission name: {name}")


class OpError(DcliError):
    pass


class TransportError(OpError):
    """DNS, connect or timeout failure; never retried."""


class DecodeError(OpError):
    def __init__(self, message: str, *, body: str | bytes = "") -> None:
        if isinstance(body, bytes):
            body = body.decode("utf-8", errors="replace")
        self.body = _truncate(body)
        if self.body:
            message = f"{message}; body={self.body}"
        super().__init__(message)


class HTTPStatusError(OpError):
    def __init__(
        self,
        message: str,
        *,
        status: int,
        method: str,
        path: str,
        errors: list[Any] | None = None,
    ) -> None:
        self.status = status
        self.method = method
        self.path = path
        self.errors = list(errors or [])
        super().__init__(message)


class NotFound(HTTPStatusError):
    pass


class ServerError(HTTPStatusError):
    pass


DCLI_CONFIG = "DCLI_CONFIG"
DCLI_BASE_URL = "DCLI_BASE_URL"
DCLI_API_KEY = "DCLI_API_KEY"

JSONAPI_MEDIA_TYPE = "application/vnd.api+json"
DEFAULT_TIMEOUT_SECONDS = 30
_BODY_PREVIEW_CHARS = 200


def _eprint(msg: str) -> None:
    print(msg, file=sys.stderr)


@dataclass(frozen=True)
class GlobalOpts:
    base_url: str = ""
    api_key: str = ""
    config_path: str = ""
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    json_output: bool = False
    pretty: bool = True
    quiet: bool = False
    verbose: bool = False


def _truncate(text: str, limit: int = _BODY_PREVIEW_CHARS) -> str:
    s = str(text or "")
    if len(s) <= limit:
        return s
    return s[:limit] + "..."


def _env_or_none(*names: str) -> str | None:
    for n in names:
        v = (os.environ.get(n) or "").strip()
        if v:
            return v
    return None


def _require_str(val: str | None, name: str, *, hint: str) -> str:
    v = (val or "").strip()
    if not v:
        raise ValidationError(f"missing {name} ({hint})")
    return v


def _print_json(obj: Any, *, pretty: bool) -> None:
    if pretty:
        sys.stdout.write(json.dumps(obj, indent=2, sort_keys=True) + "\n")
    else:
        sys.stdout.write(json.dumps(obj, separators=(",", ":"), sort_keys=True) + "\n")


def _load_json_value(*, raw: str, label: str) -> Any:
    try:
        return json.loads(raw)
    except Exception as e:
        raise ValidationError(f"invalid {label}: {e}") from e


def _load_json_object(*, raw: str, label: str) -> dict[str, Any]:
    val = _load_json_value(raw=raw, label=label)
    if not isinstance(val, dict):
        raise ValidationError(f"invalid {label}: expected JSON object")
    return val


def _write_secure_json(*, path: Path, obj: dict[str, Any]) -> None:
    _write_secure_text(path=path, text=json.dumps(obj, indent=2, sort_keys=True) + "\n")


def _write_secure_text(*, path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    try:
        os.chmod(path, 0o600)
    except Exception as e:
        raise OpError(f"failed to apply 0600 permissions to {path}: {e}") from e


def build_logger(*, quiet: bool = False, verbose: bool = False, name: str = "dcli") -> logging.Logger:
    """Return the process logger, writing to stderr.

    Built once per invocation and passed to the client; stdout stays reserved
    for command output.
    """
    logger = logging.getLogger(name)
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logger.setLevel(level)
    # Earlier handlers may hold a stderr that has since been replaced and closed.
    for old in list(logger.handlers):
        logger.removeHandler(old)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
