# src/neuroshell/core/context/variable_store.py
import threading
from typing import Dict, Iterator, Optional


class VariableStore:
    """Flat name -> string map. Names carry their namespace prefix (`_`, `#`, none)."""

    def __init__(self):
        self._vars: Dict[str, str] = {}
        self._lock = threading.RLock()

    def get(self, name: str) -> Optional[str]:
        with self._lock:
            return self._vars.get(name)

    def set(self, name: str, value: str) -> None:
        with self._lock:
            self._vars[name] = value

    def delete(self, name: str) -> bool:
        with self._lock:
            return self._vars.pop(name, None) is not None

    def delete_prefix(self, prefix: str) -> int:
        with self._lock:
            doomed = [k for k in self._vars if k.startswith(prefix)]
            for k in doomed:
                del self._vars[k]
            return len(doomed)

    def snapshot(self) -> Dict[str, str]:
        """A copy that later writes do not affect."""
        with self._lock:
            return dict(self._vars)

    def clear(self) -> None:
        with self._lock:
            self._vars.clear()

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._vars

    def __iter__(self) -> Iterator[str]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        with self._lock:
            return len(self._vars)
