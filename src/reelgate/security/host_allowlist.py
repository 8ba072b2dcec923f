"""Outbound host allowlists.

Two shapes live here:

- `ensure_host_allowed` is the exact-match check used for vendor base URLs
  (with an escape hatch for localhost/`.test` hosts in local environments).
- `HostAllowlist` is the egress guard for asset fetches: configured entries,
  built-in vendor asset domains and the object store's own hosts, matched
  exactly or by domain suffix. It is frozen after construction and consulted
  at every redirect hop.
"""

from __future__ import annotations

import ipaddress
from typing import Collection, Iterable
from urllib.parse import urlsplit

from reelgate.errors import HostNotAllowedError, InvalidAssetUrlError

_LOCAL_HOSTS = {"localhost", "127.0.0.1", "::1"}
_TEST_SUFFIXES = (".test", ".example")
_ALLOWED_SCHEMES = {"http", "https"}

DEFAULT_ALLOWED_HOSTS: tuple[str, ...] = (
    "kechuangai.com",
    "v2-fdl.kechuangai.com",
    "models.kapon.cloud",
    "volces.com",
    "ark.cn-beijing.volces.com",
    "ark-project-oss-cn-beijing.volces.com",
    "alicdn.com",
    "aliyuncs.com",
    "vidu.cn",
    "vidu.com",
    "klingai.com",
)


def _normalize_hosts(hosts: Iterable[str]) -> set[str]:
    return {host.lower() for host in hosts if host}


def normalize_host_entry(entry: str) -> str:
    """Reduce a configured entry ("https://CDN.example.com:443/") to a bare host."""
    value = (entry or "").strip().lower()
    if "://" in value:
        value = value.split("://", 1)[1]
    value = value.split("/", 1)[0]
    if value.startswith("[") and "]" in value:
        value = value[1 : value.index("]")]
    elif value.count(":") == 1:
        value = value.split(":", 1)[0]
    return value.rstrip(".")


def _is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def is_allowed_host(host: str, allowed_hosts: Collection[str], *, allow_dev_hosts: bool = True) -> bool:
    """Return True when host matches allowlist or is an accepted local/test host."""

    if not host:
        return True
    host = host.lower()
    if allow_dev_hosts:
        if host in _LOCAL_HOSTS or host.endswith(".localhost"):
            return True
        if any(host.endswith(suffix) for suffix in _TEST_SUFFIXES):
            return True
    return host in _normalize_hosts(allowed_hosts)


def ensure_host_allowed(
    host: str,
    allowed_hosts: Collection[str],
    *,
    component: str,
    allow_dev_hosts: bool = True,
) -> None:
    if not is_allowed_host(host, allowed_hosts, allow_dev_hosts=allow_dev_hosts):
        allowed_display = ", ".join(sorted(_normalize_hosts(allowed_hosts))) or "<none>"
        raise ValueError(f"{component} disallows host '{host}'. Allowed hosts: {allowed_display}")


class HostAllowlist:
    """Exact-or-suffix hostname guard over a frozen entry set."""

    def __init__(self, entries: Iterable[str]):
        normalized = (normalize_host_entry(entry) for entry in entries)
        self._entries = frozenset(entry for entry in normalized if entry)

    @classmethod
    def build(
        cls,
        configured: Iterable[str] = (),
        *,
        store_hosts: Iterable[str] = (),
        include_defaults: bool = True,
    ) -> "HostAllowlist":
        entries: list[str] = list(configured)
        if include_defaults:
            entries.extend(DEFAULT_ALLOWED_HOSTS)
        entries.extend(store_hosts)
        return cls(entries)

    @property
    def entries(self) -> frozenset[str]:
        return self._entries

    def is_allowed(self, hostname: str | None) -> bool:
        host = normalize_host_entry(hostname or "")
        if not host:
            return False
        if host in self._entries:
            return True
        if _is_ip_literal(host):
            return False
        return any(host.endswith("." + entry) for entry in self._entries)

    def ensure_allowed(self, url: str, *, component: str = "egress") -> str:
        """Validate scheme and host of `url`; return the lowercased hostname."""
        try:
            parts = urlsplit(url)
        except ValueError as exc:
            raise InvalidAssetUrlError(f"Malformed URL: {url!r}") from exc
        if parts.scheme.lower() not in _ALLOWED_SCHEMES:
            raise InvalidAssetUrlError(f"Only http(s) URLs are allowed, got {parts.scheme or '<none>'!r}")
        host = (parts.hostname or "").lower()
        if not host:
            raise InvalidAssetUrlError(f"URL has no host: {url!r}")
        if not self.is_allowed(host):
            raise HostNotAllowedError(host, component=component)
        return host

    def __contains__(self, hostname: object) -> bool:
        return isinstance(hostname, str) and self.is_allowed(hostname)

    def __repr__(self) -> str:  # pragma: no cover
        return f"<HostAllowlist {sorted(self._entries)!r}>"


__all__ = [
    "DEFAULT_ALLOWED_HOSTS",
    "HostAllowlist",
    "ensure_host_allowed",
    "is_allowed_host",
    "normalize_host_entry",
]
