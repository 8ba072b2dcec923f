"""Wire settings into the orchestrator, relocator and proxy gateway."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from reelgate.config.settings import Settings
from reelgate.providers.factory import build_video_adapters
from reelgate.security.host_allowlist import HostAllowlist
from reelgate.services.orchestrator import TaskOrchestrator
from reelgate.services.proxy_gateway import ProxyGateway
from reelgate.services.relocator import AssetRelocator
from reelgate.storage.object_store import ObjectStore, get_object_store
from reelgate.storage.relocation_cache import RelocationCache


@dataclass
class VideoServices:
    allowlist: HostAllowlist
    store: ObjectStore
    relocator: AssetRelocator
    orchestrator: TaskOrchestrator
    gateway: ProxyGateway

    async def aclose(self) -> None:
        await self.orchestrator.aclose()
        await self.relocator.aclose()
        await self.gateway.aclose()


def build_allowlist(settings: Settings, store: ObjectStore) -> HostAllowlist:
    return HostAllowlist.build(settings.allowed_proxy_hosts, store_hosts=store.allowed_hosts())


def build_video_services(
    settings: Settings,
    *,
    store: ObjectStore | None = None,
    cache: RelocationCache | None = None,
    vendor_client: httpx.AsyncClient | None = None,
    upstream_client: httpx.AsyncClient | None = None,
) -> VideoServices:
    store = store if store is not None else get_object_store()
    allowlist = build_allowlist(settings, store)
    relocator = AssetRelocator(
        store=store,
        allowlist=allowlist,
        cache=cache,
        client=upstream_client,
        policy=settings.relocation_host_policy,
        key_prefix=settings.relocation_key_prefix,
        fetch_timeout_s=settings.relocation_fetch_timeout_s,
    )
    orchestrator = TaskOrchestrator(
        adapters=build_video_adapters(settings, client=vendor_client),
        relocator=relocator,
        allowlist=allowlist,
        submit_timeout_s=settings.submit_timeout_s,
        poll_timeout_s=settings.poll_timeout_s,
    )
    gateway = ProxyGateway(
        allowlist=allowlist,
        store=store,
        client=upstream_client,
        default_cache_control=settings.proxy_default_cache_control,
    )
    return VideoServices(
        allowlist=allowlist,
        store=store,
        relocator=relocator,
        orchestrator=orchestrator,
        gateway=gateway,
    )


__all__ = ["VideoServices", "build_allowlist", "build_video_services"]
