from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Tuple


def as_utc(value: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(frozen=True)
class Credentials:
    server: str
    user: str
    password: str
    port: int = 443


@dataclass(frozen=True)
class Thresholds:
    warning_hours: float = 24.0
    error_hours: float = 48.0

    @property
    def inverted(self) -> bool:
        return self.error_hours < self.warning_hours


@dataclass(frozen=True)
class Snapshot:
    vm_name: str
    name: str
    create_time: datetime
    description: str = ""

    @property
    def created_utc(self) -> datetime:
        return as_utc(self.create_time)


@dataclass(frozen=True)
class VirtualMachine:
    name: str
    snapshots: Tuple[Snapshot, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class ClassificationResult:
    error_vms: Tuple[str, ...] = ()
    warning_vms: Tuple[str, ...] = ()
    inspected: int = 0
    oldest_snapshot: Optional[Snapshot] = None

    @property
    def offenders(self) -> int:
        return len(self.error_vms) + len(self.warning_vms)
