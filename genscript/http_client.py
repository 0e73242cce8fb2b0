# genscript/http_client.py
# Bounded urllib transport for `SET x = http <url>` and the AI command.

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.request
from typing import Any, Dict, Optional, Tuple

from .errors import GenScriptError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0              # seconds
DEFAULT_MAX_BYTES = 2 * 1024 * 1024  # 2 MiB
DEFAULT_UA = "genscript/0.3"


class FetchError(GenScriptError):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


def _read_limited(fp, max_bytes: int) -> Tuple[bytes, bool]:
    """Read at most max_bytes; return (data, truncated?)."""
    data = fp.read(max_bytes + 1)
    if len(data) > max_bytes:
        return data[:max_bytes], True
    return data, False


def _decode(body: bytes, content_type: str) -> str:
    charset = "utf-8"
    for part in content_type.split(";"):
        part = part.strip()
        if part.lower().startswith("charset="):
            charset = part.split("=", 1)[1].strip() or charset
    return body.decode(charset, errors="replace")


def _open(req: urllib.request.Request, timeout: float, max_bytes: int) -> Tuple[int, str]:
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            status = int(getattr(resp, "status", 200))
            ctype = resp.headers.get("Content-Type", "") if resp.headers else ""
            body, truncated = _read_limited(resp, max_bytes)
    except urllib.error.HTTPError as e:
        raise FetchError(f"{req.get_method()} {req.full_url} returned HTTP {e.code}", status=e.code) from e
    except (urllib.error.URLError, OSError, ValueError) as e:
        reason = getattr(e, "reason", e)
        raise FetchError(f"{req.get_method()} {req.full_url} failed: {reason}") from e
    if truncated:
        logger.warning("response from %s truncated at %d bytes", req.full_url, max_bytes)
    return status, _decode(body, ctype)


def fetch_text(
    url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
    max_bytes: int = DEFAULT_MAX_BYTES,
    headers: Optional[Dict[str, str]] = None,
) -> str:
    """GET a URL and return the decoded body. Non-2xx and transport failures raise FetchError."""
    if not url.lower().startswith(("http://", "https://")):
        raise FetchError(f"only http(s) URLs are supported: {url!r}")
    req = urllib.request.Request(url, method="GET", headers={"User-Agent": DEFAULT_UA, **(headers or {})})
    logger.debug("GET %s", url)
    _, text = _open(req, timeout, max_bytes)
    return text


def post_json(
    url: str,
    payload: Dict[str, Any],
    *,
    timeout: float = DEFAULT_TIMEOUT,
    max_bytes: int = DEFAULT_MAX_BYTES,
) -> Any:
    """POST a JSON body and decode the JSON reply."""
    data = json.dumps(payload).encode("utf-8")
    req = urllib.request.Request(
        url,
        data=data,
        method="POST",
        headers={"User-Agent": DEFAULT_UA, "Content-Type": "application/json"},
    )
    logger.debug("POST %s", url)
    _, text = _open(req, timeout, max_bytes)
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise FetchError(f"POST {url} returned invalid JSON: {e}") from e
