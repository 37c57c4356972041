from __future__ import annotations

from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Tuple
import threading

from .lab import VirtualLab
from .settings import LabSettings


class LabSessions:
    """Registry of independent labs keyed by session id.

    Each lab has its own lock; a lab is only touched while its lock is held.
    Nothing is shared between sessions.
    """

    def __init__(self, settings: Optional[LabSettings] = None):
        self.settings = settings or LabSettings()
        self._labs: Dict[str, Tuple[VirtualLab, threading.Lock]] = {}
        self._guard = threading.Lock()

    def _entry(self, session_id: str) -> Tuple[VirtualLab, threading.Lock]:
        sid = (session_id or "").strip() or "default"
        with self._guard:
            entry = self._labs.get(sid)
            if entry is None:
                entry = (VirtualLab(self.settings), threading.Lock())
                self._labs[sid] = entry
            return entry

    @contextmanager
    def lab(self, session_id: str) -> Iterator[VirtualLab]:
        lab, lock = self._entry(session_id)
        with lock:
            yield lab

    def drop(self, session_id: str) -> bool:
        with self._guard:
            return self._labs.pop((session_id or "").strip() or "default", None) is not None

    def session_ids(self) -> List[str]:
        with self._guard:
            return sorted(self._labs)

    def __len__(self) -> int:
        return len(self._labs)
