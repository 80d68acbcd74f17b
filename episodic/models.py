"""Records produced by the crawl: listing references, series records, episode records."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Status(str, Enum):
    """Airing status of a series."""

    ONGOING = "Ongoing"
    COMPLETED = "Completed"
    UNKNOWN = "Unknown"


# English and Indonesian wording used by the site themes
STATUS_KEYWORDS: tuple[tuple[re.Pattern, Status], ...] = (
    (re.compile(r"ongoing|berlangsung|airing", re.IGNORECASE), Status.ONGOING),
    (re.compile(r"complete|selesai|tamat|finished", re.IGNORECASE), Status.COMPLETED),
)


def status_from_text(text: str | None) -> Status | None:
    if not text:
        return None
    for pattern, status in STATUS_KEYWORDS:
        if pattern.search(text):
            return status
    return None


@dataclass
class ItemRef:
    """A series as seen on a listing page."""

    url: str
    title: str | None = None
    image: str | None = None
    year: int | None = None  # listing-card metadata, not persisted
    status: Status | None = None


@dataclass
class SubItemRef:
    """An episode link found on a series page."""

    url: str
    title: str | None = None


@dataclass
class SubItemRecord:
    title: str | None
    url: str
    release_date: str | None = None
    downloads: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "release_date": self.release_date,
            "downloads": list(self.downloads),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SubItemRecord":
        return cls(
            title=data.get("title"),
            url=data["url"],
            release_date=data.get("release_date"),
            downloads=list(data.get("downloads") or []),
        )

    @classmethod
    def from_ref(cls, ref: SubItemRef) -> "SubItemRecord":
        """Record for an episode whose page could not be fetched."""
        return cls(title=ref.title, url=ref.url)


@dataclass
class ItemRecord:
    """
    Full record of one series. genre has set semantics but keeps first-seen order
    so the artifact is stable between runs.
    """

    title: str | None
    url: str
    image: str | None = None
    genre: list[str] = field(default_factory=list)
    status: Status = Status.UNKNOWN
    synopsis: str | None = None
    subitems: list[SubItemRecord] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "url": self.url,
            "image": self.image,
            "genre": list(self.genre),
            "status": self.status.value,
            "synopsis": self.synopsis,
            "subitems": [s.to_dict() for s in self.subitems],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ItemRecord":
        raw_status = data.get("status")
        try:
            status = Status(raw_status) if raw_status else Status.UNKNOWN
        except ValueError:
            status = Status.UNKNOWN
        return cls(
            title=data.get("title"),
            url=data["url"],
            image=data.get("image"),
            genre=list(data.get("genre") or []),
            status=status,
            synopsis=data.get("synopsis"),
            subitems=[SubItemRecord.from_dict(s) for s in data.get("subitems") or []],
        )

    @classmethod
    def from_ref(cls, ref: ItemRef) -> "ItemRecord":
        """Record carrying only what the listing page already told us."""
        return cls(title=ref.title, url=ref.url, image=ref.image, status=ref.status or Status.UNKNOWN)
