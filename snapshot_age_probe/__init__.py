"""PRTG probe reporting VMs with old vSphere snapshots."""

__version__ = "1.0.0"
