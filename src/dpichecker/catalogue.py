# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Static test catalogue and its expansion into probe specs.

Each catalogue entry names a target URL hosted at a given provider. An entry with
`times > 1` is probed that many times in parallel; every repetition gets its own
id (`<id>/<index>`) so verdicts can be told apart.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import CatalogueError
from .models import ProbeSpec


@dataclass(frozen=True)
class CatalogueEntry:
    id: str
    provider: str
    times: int
    url: str

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CatalogueEntry:
        try:
            return cls(
                id=str(data["id"]),
                provider=str(data.get("provider") or ""),
                times=int(data.get("times", 1)),
                url=str(data["url"]),
            )
        except KeyError as exc:
            raise CatalogueError(f"catalogue entry is missing {exc.args[0]!r}: {dict(data)!r}") from exc
        except (TypeError, ValueError) as exc:
            raise CatalogueError(f"invalid catalogue entry {dict(data)!r}: {exc}") from exc


DEFAULT_CATALOGUE: tuple[CatalogueEntry, ...] = (
    CatalogueEntry("CF-02", "Cloudflare", 1, "https://genshin.jmp.blue/characters/all#"),
    CatalogueEntry("CF-03", "Cloudflare", 1, "https://api.frankfurter.dev/v1/2000-01-01..2002-12-31"),
    CatalogueEntry("DO-01", "DigitalOcean", 2, "https://genderize.io/"),
    CatalogueEntry("HE-01", "Hetzner", 2, "https://bible-api.com/john+1,2,3,4,5,6,7,8,9,10"),
    CatalogueEntry("HE-02", "Hetzner", 1, "https://tcp1620-01.dubybot.live/1MB.bin"),
    CatalogueEntry("HE-03", "Hetzner", 1, "https://tcp1620-02.dubybot.live/1MB.bin"),
    CatalogueEntry("HE-04", "Hetzner", 1, "https://tcp1620-05.dubybot.live/1MB.bin"),
    CatalogueEntry("HE-05", "Hetzner", 1, "https://tcp1620-06.dubybot.live/1MB.bin"),
    CatalogueEntry("OVH-01", "OVH", 1, "https://eu.api.ovh.com/console/rapidoc-min.js"),
    CatalogueEntry("OR-01", "Oracle", 1, "https://sfx.ovh/10M.bin"),
)


def validate_catalogue(entries: Iterable[CatalogueEntry]) -> list[CatalogueEntry]:
    """Return the entries as a list, rejecting duplicate ids and repeat counts below one."""
    seen: set[str] = set()
    validated: list[CatalogueEntry] = []
    for entry in entries:
        if not entry.id:
            raise CatalogueError("catalogue entry has an empty id")
        if entry.id in seen:
            raise CatalogueError(f"duplicate catalogue id: {entry.id}")
        if entry.times < 1:
            raise CatalogueError(f"catalogue entry {entry.id} must repeat at least once (got {entry.times})")
        seen.add(entry.id)
        validated.append(entry)
    return validated


def expand_catalogue(entries: Iterable[CatalogueEntry]) -> list[ProbeSpec]:
    """Expand every entry by its repeat count into independently-identified probe specs."""
    specs: list[ProbeSpec] = []
    for entry in validate_catalogue(entries):
        for index in range(entry.times):
            probe_id = f"{entry.id}/{index}" if entry.times > 1 else entry.id
            specs.append(ProbeSpec(id=probe_id, provider=entry.provider, url=entry.url, repeat_index=index))

    # A suffixed id can still collide with a literal catalogue id such as "B/0".
    ids = [spec.id for spec in specs]
    if len(set(ids)) != len(ids):
        duplicates = sorted({probe_id for probe_id in ids if ids.count(probe_id) > 1})
        raise CatalogueError(f"expanded probe ids collide: {', '.join(duplicates)}")
    return specs


def load_catalogue(path: str | Path) -> list[CatalogueEntry]:
    """Load a catalogue from a JSON file holding a list of `{id, provider, times, url}` objects."""
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise CatalogueError(f"{path}: not valid JSON ({exc})") from exc
    if isinstance(raw, Mapping):
        raw = raw.get("tests")
    if not isinstance(raw, list):
        raise CatalogueError(f"{path}: expected a list of catalogue entries")
    entries = []
    for item in raw:
        if not isinstance(item, Mapping):
            raise CatalogueError(f"{path}: catalogue entries must be objects, got {item!r}")
        entries.append(CatalogueEntry.from_mapping(item))
    return validate_catalogue(entries)


__all__ = [
    "CatalogueEntry",
    "DEFAULT_CATALOGUE",
    "expand_catalogue",
    "load_catalogue",
    "validate_catalogue",
]
