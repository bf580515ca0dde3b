from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class NewDepsError(Exception):
    """Base error envelope. Carries a stable code so callers can branch on it."""

    code: str
    message: str
    file: Optional[str] = None
    path: Optional[str] = None

    def __str__(self) -> str:
        parts: list[str] = []
        if self.file:
            parts.append(self.file)
        if self.path:
            parts.append(self.path)
        loc = ":".join(parts) if parts else "<graph>"
        return f"{loc}: {self.code}: {self.message}"


class MetadataLoadError(NewDepsError):
    pass


class SnapshotError(NewDepsError):
    pass


class InconsistentGraph(NewDepsError):
    pass


class UnknownPackage(NewDepsError):
    pass


class OptionError(NewDepsError):
    pass
