"""Snapshot age classification."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Set

from .models import ClassificationResult, Snapshot, Thresholds, VirtualMachine, as_utc

logger = logging.getLogger(__name__)

REPLICATION_SUFFIX = "_rep"


def is_replication(snapshot: Snapshot, suffix: str = REPLICATION_SUFFIX) -> bool:
    if not suffix:
        return False
    return (snapshot.vm_name or "").lower().endswith(suffix.lower())


def qualifying_snapshots(
    snapshots: Iterable[Snapshot],
    warning_cutoff: datetime,
    suffix: str = REPLICATION_SUFFIX,
) -> List[Snapshot]:
    """Snapshots created at or before the warning cutoff, replication ones excluded."""
    return [
        snap
        for snap in snapshots
        if not is_replication(snap, suffix) and snap.created_utc <= warning_cutoff
    ]


def classify(
    inventory: Iterable[VirtualMachine],
    thresholds: Thresholds,
    now: Optional[datetime] = None,
    replication_suffix: str = REPLICATION_SUFFIX,
) -> ClassificationResult:
    """
    Bucket VMs by the age of their oldest qualifying snapshot.

    A VM lands in the error bucket when that snapshot was created at or before
    ``now - error_hours``, otherwise in the warning bucket. Inventory order is kept.
    """
    now = as_utc(now or datetime.now(timezone.utc))
    warning_cutoff = now - timedelta(hours=thresholds.warning_hours)
    error_cutoff = now - timedelta(hours=thresholds.error_hours)

    error_vms: List[str] = []
    warning_vms: List[str] = []
    seen: Set[str] = set()
    oldest: Optional[Snapshot] = None
    inspected = 0

    for vm in inventory:
        inspected += 1
        if vm.name in seen:
            continue
        candidates = qualifying_snapshots(vm.snapshots, warning_cutoff, replication_suffix)
        if not candidates:
            continue
        seen.add(vm.name)
        vm_oldest = min(candidates, key=lambda snap: snap.created_utc)
        if oldest is None or vm_oldest.created_utc < oldest.created_utc:
            oldest = vm_oldest
        if vm_oldest.created_utc <= error_cutoff:
            error_vms.append(vm.name)
        else:
            warning_vms.append(vm.name)
        logger.debug(
            "VM %s has %s qualifying snapshot(s), oldest %s created %s",
            vm.name,
            len(candidates),
            vm_oldest.name,
            vm_oldest.created_utc.isoformat(),
        )

    return ClassificationResult(
        error_vms=tuple(error_vms),
        warning_vms=tuple(warning_vms),
        inspected=inspected,
        oldest_snapshot=oldest,
    )
