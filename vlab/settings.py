from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    raw = raw.strip().lower()
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    return default


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class LabSettings:
    """Knobs for a lab session.

    Defaults mirror the classroom setup: one 192.168.1.0/24 LAN behind
    192.168.1.1 with Google DNS, auto-assigned hosts starting at .10.
    """

    allow_duplicate_cables: bool = True
    log_tail: int = 20
    max_log_events: Optional[int] = None

    default_gateway: str = "192.168.1.1"
    default_mask: str = "255.255.255.0"
    default_dns: str = "8.8.8.8"
    auto_host_offset: int = 10

    @staticmethod
    def from_env() -> "LabSettings":
        base = LabSettings()
        return LabSettings(
            allow_duplicate_cables=_env_bool("VLAB_ALLOW_DUPLICATE_CABLES", base.allow_duplicate_cables),
            log_tail=_env_int("VLAB_LOG_TAIL", base.log_tail) or base.log_tail,
            max_log_events=_env_int("VLAB_MAX_LOG_EVENTS", base.max_log_events),
            default_gateway=os.getenv("VLAB_DEFAULT_GATEWAY", base.default_gateway).strip(),
            default_mask=os.getenv("VLAB_DEFAULT_MASK", base.default_mask).strip(),
            default_dns=os.getenv("VLAB_DEFAULT_DNS", base.default_dns).strip(),
            auto_host_offset=_env_int("VLAB_AUTO_HOST_OFFSET", base.auto_host_offset),
        )
