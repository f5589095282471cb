"""Thin pyVmomi session used by the probe (SOAP)."""

from __future__ import annotations

import importlib
import logging
import ssl
from dataclasses import dataclass
from typing import Any, Callable, List, Optional

from .errors import DependencyLoadError, InventoryError, SessionError
from .models import Credentials, Snapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SdkBindings:
    smart_connect: Callable[..., Any]
    disconnect: Callable[[Any], None]
    vim: Any


def resolve_sdk(importer: Callable[[str], Any] = importlib.import_module) -> SdkBindings:
    """Load the pyVmomi entry points the probe needs."""
    try:
        connect = importer("pyVim.connect")
        pyvmomi = importer("pyVmomi")
    except ImportError as exc:
        raise DependencyLoadError(f"vSphere SDK (pyVmomi) is not available: {exc}") from exc
    return SdkBindings(
        smart_connect=connect.SmartConnect,
        disconnect=connect.Disconnect,
        vim=pyvmomi.vim,
    )


def _walk_snapshot_tree(nodes, vm_name: str, out: List[Snapshot]) -> None:
    for node in nodes or []:
        out.append(
            Snapshot(
                vm_name=vm_name,
                name=getattr(node, "name", "") or "",
                create_time=node.createTime,
                description=getattr(node, "description", "") or "",
            )
        )
        _walk_snapshot_tree(getattr(node, "childSnapshotList", None), vm_name, out)


class VSphereSession:
    """One authenticated session against a vCenter / ESXi endpoint."""

    def __init__(self, credentials: Credentials, sdk: Optional[SdkBindings] = None) -> None:
        self.credentials = credentials
        self._sdk = sdk
        self._si = None

    @property
    def server(self) -> str:
        return self.credentials.server

    @property
    def sdk(self) -> SdkBindings:
        if self._sdk is None:
            self._sdk = resolve_sdk()
        return self._sdk

    def open(self) -> None:
        """Connect ignoring invalid or self-signed certificates."""
        sdk = self.sdk
        ctx = ssl._create_unverified_context()
        try:
            self._si = sdk.smart_connect(
                host=self.credentials.server,
                user=self.credentials.user,
                pwd=self.credentials.password,
                port=self.credentials.port,
                sslContext=ctx,
            )
        except Exception as exc:
            raise SessionError(
                f"Could not connect to {self.server}: {exc}", server=self.server
            ) from exc
        logger.info("Connected to %s:%s as %s", self.server, self.credentials.port, self.credentials.user)

    def list_vms(self) -> List[Any]:
        if self._si is None:
            raise InventoryError(f"No open session to {self.server}", server=self.server)
        view = None
        try:
            content = self._si.RetrieveContent()
            view = content.viewManager.CreateContainerView(
                content.rootFolder, [self.sdk.vim.VirtualMachine], True
            )
            vms = list(view.view)
        except Exception as exc:
            raise InventoryError(
                f"Could not list VMs on {self.server}: {exc}", server=self.server
            ) from exc
        finally:
            if view is not None:
                try:
                    view.Destroy()
                except Exception:
                    logger.debug("Error destroying container view", exc_info=True)
        logger.info("Found %s VMs on %s", len(vms), self.server)
        return vms

    @staticmethod
    def vm_name(vm) -> str:
        return getattr(vm, "name", "") or ""

    def list_snapshots(self, vm) -> List[Snapshot]:
        """Flatten the snapshot tree of a VM, depth first."""
        info = vm.snapshot
        if info is None:
            return []
        snapshots: List[Snapshot] = []
        _walk_snapshot_tree(info.rootSnapshotList, self.vm_name(vm), snapshots)
        return snapshots

    def close(self) -> None:
        if self._si is None:
            return
        try:
            self.sdk.disconnect(self._si)
        except Exception:
            logger.debug("Error disconnecting from %s", self.server, exc_info=True)
        finally:
            self._si = None
