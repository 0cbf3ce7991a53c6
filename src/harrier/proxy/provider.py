from __future__ import annotations

import logging
import time
from typing import Any

import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from harrier.config import Settings, get_settings
from harrier.errors import ProxyProviderError

logger = logging.getLogger(__name__)

ACTIVE_STATUS = 1


class ProxyPort(BaseModel):
    """One proxy port as returned by the ASOCKS API."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    name: str = ""
    proxy: str = ""
    template: str = ""
    login: str = ""
    password: str = ""
    country_code: str = Field(default="", alias="countryCode")
    status: int = ACTIVE_STATUS

    @property
    def endpoint(self) -> str:
        """Proxy URL with credentials, ``http://user:pass@ip:port``."""
        if self.template:
            return self.template
        if self.login and self.password and self.proxy:
            return f"http://{self.login}:{self.password}@{self.proxy}"
        return f"http://{self.proxy}" if self.proxy else ""


class AsocksClient:
    def __init__(self, settings: Settings | None = None, session: requests.Session | None = None):
        self.settings = settings or get_settings()
        self.http = session or requests.Session()

    @property
    def configured(self) -> bool:
        return bool(self.settings.asocks_api_key)

    def list_ports(self, page: int = 1, per_page: int = 50) -> list[ProxyPort]:
        if not self.configured:
            logger.info("No proxy API key configured")
            return []
        data = self._request("GET", "/proxy/ports", params={"page": page, "per_page": per_page})
        message = data.get("message") if isinstance(data.get("message"), dict) else {}
        ports = [port for port in self._parse_ports(message.get("data")) if port.status == ACTIVE_STATUS]
        logger.info("Proxy provider returned %d active ports", len(ports))
        return ports

    def create_port(self, country_code: str, label: str) -> ProxyPort:
        if not self.configured:
            raise ProxyProviderError("proxy API key not configured")
        body = {
            "country_code": country_code,
            "name": f"{label}-{int(time.time() * 1000)}",
            "ttl": 1,
            "type_id": 1,
            "proxy_type_id": 2,
        }
        data = self._request("POST", "/proxy/create-port", json=body)
        ports = self._parse_ports(data.get("data"))
        if not data.get("success", True) or not ports:
            raise ProxyProviderError(f"proxy creation returned no port: {data}")
        logger.info("Created proxy port id=%s country=%s", ports[0].id, ports[0].country_code)
        return ports[0]

    def delete_port(self, port_id: int) -> None:
        if not self.configured:
            raise ProxyProviderError("proxy API key not configured")
        self._request("DELETE", "/proxy/delete-port", json={"id": port_id})
        logger.info("Deleted proxy port id=%s", port_id)

    def refresh_port(self, port_id: int) -> None:
        if not self.configured:
            raise ProxyProviderError("proxy API key not configured")
        self._request("GET", f"/proxy/refresh/{port_id}")
        logger.info("Refreshed proxy port id=%s", port_id)

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        url = self.settings.asocks_base_url.rstrip("/") + path
        params = {"apiKey": self.settings.asocks_api_key, **kwargs.pop("params", {})}
        try:
            response = self.http.request(
                method,
                url,
                params=params,
                timeout=self.settings.proxy_request_timeout_sec,
                **kwargs,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise ProxyProviderError(f"{method} {path} failed: {exc}") from exc

        try:
            payload = response.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {}

    @staticmethod
    def _parse_ports(raw: Any) -> list[ProxyPort]:
        ports: list[ProxyPort] = []
        for item in raw or []:
            try:
                ports.append(ProxyPort.model_validate(item))
            except ValidationError:
                logger.debug("Skipping malformed proxy port: %s", item)
        return ports
