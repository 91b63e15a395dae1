"""Input and output records for a tracker run."""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass
class ShowQuery:
    """A show to look up. ``id`` is filled in once resolved by name."""
    name: Optional[str] = None
    id: Optional[int] = None
    season: Optional[int] = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> 'ShowQuery':
        """Build a query from a state-file entry, ignoring unknown keys."""
        return cls(name=raw.get('name'), id=raw.get('id'), season=raw.get('season'))

    def to_dict(self) -> dict[str, Any]:
        return {key: value for key, value in (
            ('name', self.name), ('id', self.id), ('season', self.season)
        ) if value is not None}

    @property
    def label(self) -> str:
        if self.name and self.id is not None:
            return f"{self.name} (id {self.id})"
        if self.name:
            return self.name
        return f"id {self.id}"


@dataclass(frozen=True)
class FetchResult:
    """Outcome for one show: detail payload, or None with the error that prevented it."""
    show: ShowQuery
    data: Optional[dict[str, Any]] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.data is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            'show': self.show.to_dict(),
            'data': self.data,
            'error': str(self.error) if self.error is not None else None,
        }
