from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from functools import lru_cache

from harrier.config import Settings, get_settings
from harrier.errors import ProxyExhausted, ProxyProviderError
from harrier.proxy.provider import AsocksClient, ProxyPort
from harrier.types import ProxyStats

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ProxyIdentity:
    port: ProxyPort
    consecutive_failures: int = 0
    total_attempts: int = 0
    successful_attempts: int = 0
    last_used_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def id(self) -> int:
        return self.port.id

    @property
    def success_rate(self) -> float:
        if not self.total_attempts:
            return 0.0
        return self.successful_attempts / self.total_attempts


class ProxyManager:
    """Owns the egress identity pool and the single "current" pointer.

    Every public method takes the same lock, so callers on different
    threads never observe a half-rotated pool.
    """

    def __init__(self, settings: Settings | None = None, client: AsocksClient | None = None):
        self.settings = settings or get_settings()
        self.client = client or AsocksClient(self.settings)
        self._lock = threading.RLock()
        self._identities: dict[int, ProxyIdentity] = {}
        self._current_id: int | None = None
        self._initialized = False

    @property
    def current_id(self) -> int | None:
        with self._lock:
            return self._current_id

    def identity(self, identity_id: int) -> ProxyIdentity | None:
        with self._lock:
            return self._identities.get(identity_id)

    def initialize(self) -> None:
        with self._lock:
            if self._initialized:
                return
            self._initialized = True

            try:
                ports = self.client.list_ports()
            except ProxyProviderError as exc:
                logger.warning("Could not list proxy identities: %s", exc)
                ports = []

            if ports:
                for port in ports:
                    self._add(port)
                logger.info("Loaded %d proxy identities", len(ports))
            elif self.client.configured:
                logger.info("No proxy identities found, provisioning the first one")
                try:
                    self._add(self._provision())
                except ProxyExhausted as exc:
                    logger.warning("%s; using direct egress", exc)

            if self._identities:
                self._current_id = next(iter(self._identities))
                logger.info("Using proxy id=%s as current", self._current_id)

    def get_proxy_url(self) -> str | None:
        """Endpoint of the current identity, or None for direct egress."""
        if not self.settings.proxy_enabled:
            return None
        with self._lock:
            self.initialize()
            if self._current_id not in self._identities:
                self._select_next()
            identity = self._identities.get(self._current_id) if self._current_id is not None else None
            if identity is None:
                logger.info("No proxy identity available; using direct egress")
                return None
            return identity.port.endpoint or None

    def report_success(self) -> None:
        with self._lock:
            identity = self._current()
            if identity is None:
                return
            identity.consecutive_failures = 0
            identity.total_attempts += 1
            identity.successful_attempts += 1
            identity.last_used_at = datetime.now(UTC)
            logger.info("Proxy id=%s success rate=%.1f%%", identity.id, identity.success_rate * 100)

    def report_failure(self) -> None:
        with self._lock:
            identity = self._current()
            if identity is None:
                return
            identity.consecutive_failures += 1
            identity.total_attempts += 1
            identity.last_used_at = datetime.now(UTC)
            threshold = self.settings.proxy_failure_threshold
            logger.warning(
                "Proxy id=%s failed (%d/%d consecutive, success rate=%.1f%%)",
                identity.id,
                identity.consecutive_failures,
                threshold,
                identity.success_rate * 100,
            )
            if identity.consecutive_failures >= threshold:
                logger.warning("Proxy id=%s exhausted, rotating", identity.id)
                self._rotate()

    def stats(self) -> ProxyStats:
        with self._lock:
            threshold = self.settings.proxy_failure_threshold
            active = sum(1 for item in self._identities.values() if item.consecutive_failures < threshold)
            return ProxyStats(
                total=len(self._identities),
                active=active,
                exhausted=len(self._identities) - active,
                current_id=self._current_id,
            )

    def refresh_current(self) -> bool:
        """Ask the provider for a new external IP on the current identity."""
        with self._lock:
            self.initialize()
            if self._current_id is None:
                return False
            self.client.refresh_port(self._current_id)
            return True

    def _current(self) -> ProxyIdentity | None:
        if self._current_id is None:
            return None
        return self._identities.get(self._current_id)

    def _add(self, port: ProxyPort) -> ProxyIdentity:
        identity = ProxyIdentity(port=port)
        self._identities[port.id] = identity
        return identity

    def _is_active(self, identity: ProxyIdentity) -> bool:
        return identity.consecutive_failures < self.settings.proxy_failure_threshold

    def _provision(self) -> ProxyPort:
        try:
            return self.client.create_port(self.settings.proxy_country, self.settings.proxy_label)
        except ProxyProviderError as exc:
            raise ProxyExhausted(f"proxy provisioning failed: {exc}") from exc

    def _rotate(self) -> None:
        failed_id = self._current_id
        for identity_id, identity in self._identities.items():
            if identity_id != failed_id and self._is_active(identity):
                self._current_id = identity_id
                logger.info("Rotated to existing proxy id=%s", identity_id)
                return

        try:
            port = self._provision()
        except ProxyExhausted as exc:
            logger.warning("%s; using direct egress", exc)
            self._current_id = None
            return

        self._add(port)
        self._current_id = port.id
        logger.info("Rotated to new proxy id=%s", port.id)
        self._prune()

    def _select_next(self) -> None:
        available = sorted(
            (item for item in self._identities.values() if self._is_active(item)),
            key=lambda item: item.consecutive_failures,
        )
        if available:
            self._current_id = available[0].id
            logger.info("Selected proxy id=%s", self._current_id)
            return
        if not self.client.configured:
            self._current_id = None
            return
        try:
            port = self._provision()
        except ProxyExhausted as exc:
            logger.warning("%s; using direct egress", exc)
            self._current_id = None
            return
        self._add(port)
        self._current_id = port.id

    def _prune(self) -> None:
        excess = len(self._identities) - self.settings.proxy_max_pool_size
        if excess <= 0:
            return
        stale = sorted(
            (item for item in self._identities.values() if item.id != self._current_id),
            key=lambda item: item.last_used_at,
        )
        for identity in stale[:excess]:
            try:
                self.client.delete_port(identity.id)
            except ProxyProviderError as exc:
                logger.warning("Could not delete proxy id=%s upstream: %s", identity.id, exc)
            self._identities.pop(identity.id, None)
            logger.info("Retired proxy id=%s", identity.id)


@lru_cache(maxsize=1)
def get_proxy_manager() -> ProxyManager:
    return ProxyManager()
