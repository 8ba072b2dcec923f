"""Egress security helpers."""

from reelgate.security.host_allowlist import HostAllowlist, ensure_host_allowed

__all__ = ["HostAllowlist", "ensure_host_allowed"]
