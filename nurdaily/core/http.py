"""
Thin requests wrappers that translate transport problems into the
resolver error taxonomy. One request per call, no retry.
"""
import logging
from typing import Any, Dict, Optional

import requests

from nurdaily.core.errors import MalformedResponse, NetworkFailure, QuotaExceeded

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10
DEFAULT_HEADERS = {
    "User-Agent": "(Nur Daily journal)",
    "Accept": "application/json",
}


def _decode(response: requests.Response, url: str) -> Any:
    if response.status_code == 429:
        raise QuotaExceeded(f"Rate limited by {url}")
    if response.status_code >= 400:
        raise NetworkFailure(f"HTTP {response.status_code} from {url}")
    try:
        return response.json()
    except ValueError as e:
        raise MalformedResponse(f"Non-JSON body from {url}: {e}") from e


def get_json(
    url: str,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> Any:
    """GET url and return decoded JSON."""
    logger.debug(f"GET {url} params={_redact(params)}")
    try:
        response = requests.get(url, params=params, headers=headers or DEFAULT_HEADERS, timeout=timeout)
    except requests.exceptions.RequestException as e:
        raise NetworkFailure(f"Network error fetching {url}: {e}") from e
    return _decode(response, url)


def _redact(params: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not params:
        return params
    return {k: ("***" if "key" in k.lower() else v) for k, v in params.items()}
