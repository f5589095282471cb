"""PRTG "EXE/Script Advanced" JSON report builder."""
import json
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

from .models import ClassificationResult, Thresholds

ERROR_CHANNEL = "Snapshots older than ERROR level"
WARNING_CHANNEL = "Snapshots older than WARNING level"

UNIT = "Count"
LIMIT_MODE = 1
# Counts are whole numbers, so any offender crosses 0.5.
LIMIT_MAX_ERROR = 0.5
MESSAGE_SEPARATOR = ", "
TEXT_MAX_LEN = 2000


def _sanitize_message(message: Any) -> str:
    """Flatten to one line and cap the length PRTG displays."""
    if message is None:
        return ""
    text = str(message).replace("\n", " ").replace("\r", " ").strip()
    if len(text) > TEXT_MAX_LEN:
        return text[:TEXT_MAX_LEN]
    return text


def build_channel(name: str, vms: Iterable[str]) -> Dict[str, Any]:
    vm_names = list(vms)
    return {
        "channel": name,
        "value": len(vm_names),
        "unit": UNIT,
        "limitmode": LIMIT_MODE,
        "limitmaxerror": LIMIT_MAX_ERROR,
        "limiterrormsg": _sanitize_message(MESSAGE_SEPARATOR.join(vm_names)),
    }


def _summary_text(
    result: ClassificationResult, thresholds: Thresholds, now: Optional[datetime]
) -> str:
    text = (
        f"{result.offenders} of {result.inspected} VMs with snapshots older than "
        f"{thresholds.warning_hours:g}h"
    )
    oldest = result.oldest_snapshot
    if oldest is not None:
        now = now or datetime.now(timezone.utc)
        age_hours = (now - oldest.created_utc).total_seconds() / 3600
        text += f"; oldest: {oldest.vm_name}/{oldest.name} ({age_hours:.0f}h)"
    return _sanitize_message(text)


def success_report(
    result: ClassificationResult,
    thresholds: Thresholds,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    return {
        "prtg": {
            "result": [
                build_channel(ERROR_CHANNEL, result.error_vms),
                build_channel(WARNING_CHANNEL, result.warning_vms),
            ],
            "text": _summary_text(result, thresholds, now),
        }
    }


def error_report(message: Any) -> Dict[str, Any]:
    text = _sanitize_message(message) or "Unknown error"
    return {"prtg": {"error": 1, "text": text}}


def render(document: Dict[str, Any]) -> str:
    return json.dumps(document, ensure_ascii=False)
