"""Runtime release schedule fetch and parsing."""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from constants import Constants
from common.http_client import get_json
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from errors import FetchFailure

from .models import RuntimeRelease
from .versions import sort_versions

logger = logging.getLogger(__name__)


def _parse_date(value: Any) -> Optional[date]:
    """Parse an ISO date (YYYY-MM-DD, optionally with a time part)."""
    if not value:
        return None
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            return None


def parse_release_schedule(data: Dict[str, Any]) -> List[RuntimeRelease]:
    """Convert the schedule mapping into RuntimeRelease records.

    Args:
        data: Mapping of "vNN" keys to {start, end, maintenance, lts, codename}.

    Returns:
        Releases sorted by ascending version.
    """
    releases: Dict[str, RuntimeRelease] = {}
    for key, meta in (data or {}).items():
        if not isinstance(meta, dict):
            continue
        version = str(key).lstrip("vV")
        start = _parse_date(meta.get("start"))
        end = _parse_date(meta.get("end"))
        if start is None or end is None:
            if is_debug_enabled(logger):
                logger.debug(
                    "Skipping schedule entry without start/end",
                    extra=extra_context(
                        event="parse",
                        component="schedule",
                        action="skip",
                        target=version
                    )
                )
            continue
        releases[version] = RuntimeRelease(
            version=version,
            start=start,
            end=end,
            maintenance=_parse_date(meta.get("maintenance")),
            lts=_parse_date(meta.get("lts")),
            codename=meta.get("codename") or None,
        )
    return [releases[v] for v in sort_versions(releases)]


def fetch_release_schedule(url: Optional[str] = None) -> List[RuntimeRelease]:
    """Fetch and parse the runtime release schedule.

    Raises:
        FetchFailure: on any transport failure, non-200 status or bad JSON.
    """
    target = url or Constants.RELEASE_SCHEDULE_URL
    status_code, _, data = get_json(target)
    if status_code == 0:
        raise FetchFailure(safe_url(target), "network error")
    if status_code != 200:
        raise FetchFailure(safe_url(target), "unexpected response", status_code)
    if not isinstance(data, dict):
        raise FetchFailure(safe_url(target), "response was not a JSON object", status_code)
    releases = parse_release_schedule(data)
    if not releases:
        raise FetchFailure(safe_url(target), "schedule contained no releases", status_code)
    logger.info("Fetched %d runtime releases from %s", len(releases), safe_url(target))
    return releases
