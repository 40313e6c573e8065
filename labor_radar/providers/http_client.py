# labor_radar/providers/http_client.py
from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional, Sequence, Tuple, Union

import httpx

from labor_radar.config import Settings

logger = logging.getLogger("labor-radar")

USER_AGENT = "labor-radar/1.0 (+eu-labor-stats)"

Params = Union[Dict[str, str], Sequence[Tuple[str, str]]]

# 429 and 5xx are worth another attempt; other 4xx will not change on retry.
_RETRYABLE_STATUS = {429, 500, 502, 503, 504}


def _client(timeout: float) -> httpx.Client:
    headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
    return httpx.Client(timeout=timeout, headers=headers, follow_redirects=True)


def get_json(
    url: str,
    params: Params,
    settings: Settings,
    label: str,
) -> Tuple[Optional[Any], Optional[str]]:
    """
    GET a JSON document with bounded timeout and linear-backoff retries.
    Returns (payload, None) on success or (None, reason) on failure; never raises.
    """
    attempts = max(1, settings.retries)
    reason: Optional[str] = None
    for attempt in range(1, attempts + 1):
        retry = True
        try:
            with _client(settings.timeout_sec) as client:
                r = client.get(url, params=params)
            if r.status_code >= 400:
                reason = f"HTTP {r.status_code}"
                retry = r.status_code in _RETRYABLE_STATUS
            else:
                return r.json(), None
        except httpx.HTTPError as e:
            reason = f"{type(e).__name__}: {e}"
        except ValueError as e:
            # body was not JSON; another attempt will not fix it
            reason = f"invalid JSON body: {e}"
            retry = False
        logger.warning("[%s] attempt %d/%d failed %s: %s", label, attempt, attempts, url, reason)
        if not retry:
            break
        if attempt < attempts and settings.backoff > 0:
            time.sleep(settings.backoff * attempt)
    return None, reason
