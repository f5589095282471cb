"""Sequential snapshot audit: session, collection, classification, report."""
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from . import reporter
from .classifier import classify
from .config import Config, validate_config
from .errors import PreconditionError, ProbeError
from .models import ClassificationResult, VirtualMachine
from .vsphere_client import VSphereSession

logger = logging.getLogger(__name__)

SessionFactory = Callable[[Config], VSphereSession]


def default_session_factory(config: Config) -> VSphereSession:
    return VSphereSession(config.credentials)


class SnapshotAuditor:
    """Runs one audit and returns exactly one report document."""

    def __init__(
        self,
        config: Config,
        session_factory: Optional[SessionFactory] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.config = config
        self.session_factory = session_factory or default_session_factory
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def run(self) -> Dict[str, Any]:
        try:
            self._check_preconditions()
            inventory = self.collect()
            now = self.clock()
            result = self.classify(inventory, now)
        except ProbeError as exc:
            logger.error("Snapshot audit failed: %s", exc.message)
            return reporter.error_report(exc.message)
        except Exception as exc:
            logger.exception("Unexpected error during snapshot audit")
            return reporter.error_report(f"Unexpected error on {self.config.server}: {exc}")

        logger.info(
            "Snapshot audit done: %s error, %s warning, %s VMs inspected",
            len(result.error_vms),
            len(result.warning_vms),
            result.inspected,
        )
        return reporter.success_report(result, self.config.thresholds, now)

    def _check_preconditions(self) -> None:
        issues = validate_config(self.config)
        if issues:
            raise PreconditionError("Missing parameters: " + "; ".join(issues))

    def collect(self) -> List[VirtualMachine]:
        session = self.session_factory(self.config)
        session.open()
        try:
            vms = session.list_vms()
            inventory = []
            for vm in vms:
                inspected = self._inspect_vm(session, vm)
                if inspected is not None:
                    inventory.append(inspected)
            return inventory
        finally:
            session.close()

    @staticmethod
    def _inspect_vm(session: VSphereSession, vm) -> Optional[VirtualMachine]:
        """Per-VM failures never abort the run; a VM whose name cannot be read is skipped."""
        try:
            name = session.vm_name(vm)
        except Exception as exc:
            logger.debug("Skipping VM %r, name could not be read: %s", vm, exc)
            return None
        try:
            snapshots = session.list_snapshots(vm)
        except Exception as exc:
            logger.debug("Snapshot query failed for VM %s: %s", name or "<unknown>", exc)
            snapshots = []
        return VirtualMachine(name=name, snapshots=tuple(snapshots))

    def classify(self, inventory: List[VirtualMachine], now: datetime) -> ClassificationResult:
        return classify(
            inventory,
            self.config.thresholds,
            now,
            replication_suffix=self.config.replication_suffix,
        )
