import logging
import threading
from typing import Iterable

from portfolio_api.logging import get_audit_logger

LOGGER = logging.getLogger(__name__)
AUDIT = get_audit_logger()


class IpAccessList:
    """Process-wide blocklist of client addresses, held in memory only."""

    def __init__(self, initial: Iterable[str] = ()) -> None:
        self._blocked: set[str] = {ip.strip() for ip in initial if ip and ip.strip()}
        self._lock = threading.Lock()
        if self._blocked:
            LOGGER.info("Preloaded %d blocked address(es)", len(self._blocked))

    def is_blocked(self, ip: str | None) -> bool:
        if not ip:
            return False
        with self._lock:
            return ip in self._blocked

    def block(self, ip: str) -> None:
        ip = ip.strip()
        if not ip:
            raise ValueError("IP address is required")
        with self._lock:
            self._blocked.add(ip)
        AUDIT.warning("IP blacklisted: %s", ip)

    def unblock(self, ip: str) -> bool:
        with self._lock:
            removed = ip.strip() in self._blocked
            self._blocked.discard(ip.strip())
        if removed:
            AUDIT.info("IP removed from blacklist: %s", ip.strip())
        return removed

    def blocked(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._blocked)
