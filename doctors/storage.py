"""Loading raw doctor rows from a JSON file or URL.

The payload must be a JSON array of objects. Files are decoded tolerantly
(UTF-8 with or without BOM, UTF-16) because exports from spreadsheet tools
vary; remote data is requested with cache-bypassing headers so a freshly
published list is picked up on the next start.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)

NO_CACHE_HEADERS: Dict[str, str] = {
    "Cache-Control": "no-cache, no-store, max-age=0",
    "Pragma": "no-cache",
    "Accept": "application/json",
}

DEFAULT_TIMEOUT = 10.0


class DataLoadError(RuntimeError):
    """Raised when the doctor list cannot be loaded."""


def _decode(raw: bytes) -> str:
    for enc in ("utf-8-sig", "utf-16"):
        try:
            return raw.decode(enc)
        except UnicodeDecodeError:
            continue
    return raw.decode("utf-8", errors="replace")


def parse_records(text: str, source: str = "<memory>") -> List[Dict[str, Any]]:
    """Parse ``text`` into a list of raw rows."""
    if not text.strip():
        raise DataLoadError(f"{source}: leere Datei")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DataLoadError(f"{source}: ungültiges JSON ({exc})") from exc
    if not isinstance(data, list):
        raise DataLoadError(f"{source}: JSON-Array erwartet, {type(data).__name__} erhalten")
    return data


def load_records(path: str | Path) -> List[Dict[str, Any]]:
    """Read raw rows from a local JSON file."""
    p = Path(path)
    if not p.is_file():
        raise DataLoadError(f"Datei nicht gefunden: {p}")
    try:
        raw = p.read_bytes()
    except OSError as exc:
        raise DataLoadError(f"{p}: {exc}") from exc
    records = parse_records(_decode(raw), str(p))
    logger.info("  ✓ %s Zeilen aus '%s' geladen.", len(records), p)
    return records


def fetch_records(
    url: str,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> List[Dict[str, Any]]:
    """Download raw rows from ``url``; any non-2xx status is an error."""
    http = session or requests
    try:
        resp = http.get(url, headers=NO_CACHE_HEADERS, timeout=timeout)
    except requests.exceptions.RequestException as exc:
        raise DataLoadError(f"Failed to load {url}: {exc}") from exc
    if not 200 <= resp.status_code < 300:
        raise DataLoadError(f"Failed to load {url}: {resp.status_code}")
    records = parse_records(_decode(resp.content), url)
    logger.info("  ✓ %s Zeilen von %s geladen.", len(records), url)
    return records


def save_records(records: List[Dict[str, Any]], path: str | Path) -> None:
    """Write rows as pretty-printed UTF-8 JSON (used by the CLI export)."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(json.dumps(records, ensure_ascii=False, indent=2), encoding="utf-8")
