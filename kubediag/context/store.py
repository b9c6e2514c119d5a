"""
Shared Execution Context

Session-scoped storage for the default configuration objects that later
script statements inherit. A context is created once per execution session
and passed explicitly into every provider resolution.
"""

from typing import Any, Dict, List, Optional
import logging
import threading

logger = logging.getLogger(__name__)


class ExecutionContext:
    """Key-value store holding default configuration for one execution."""

    SSH_CONFIG = 'ssh_config'
    KUBE_CONFIG = 'kube_config'
    GLOBAL_CONFIG = 'global_config'

    def __init__(self, defaults: Optional[Dict[str, Any]] = None):
        self._lock = threading.RLock()
        self._values: Dict[str, Any] = dict(defaults or {})

    def get(self, key: str, default: Any = None) -> Any:
        """Get the value stored under key, or default when absent."""
        with self._lock:
            return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Store value under key, replacing any previous default."""
        with self._lock:
            if key in self._values:
                logger.debug(f"Replacing context default '{key}'")
            self._values[key] = value

    def has(self, key: str) -> bool:
        with self._lock:
            return key in self._values

    def keys(self) -> List[str]:
        with self._lock:
            return sorted(self._values)

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __repr__(self) -> str:
        return f"ExecutionContext(keys={self.keys()})"
