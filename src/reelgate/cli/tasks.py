"""Submit and poll video generation tasks from the terminal."""

from __future__ import annotations

from typing import Any

import anyio
import click

from reelgate.cli.ui import console, format_status, render_task_status
from reelgate.config import get_settings
from reelgate.errors import DomainError
from reelgate.models import GenerationRequest, TaskState, TaskStatus, VideoMode, VideoProvider
from reelgate.services.runtime import VideoServices, build_video_services

_PROVIDERS = [p.value for p in VideoProvider]
_MODES = [m.value for m in VideoMode]


async def _poll_until_done(
    services: VideoServices,
    provider: str,
    task_id: str,
    *,
    wait: bool,
    interval: float,
    max_polls: int,
) -> TaskStatus:
    last: TaskState | None = None
    polls = 0
    while True:
        status = await services.orchestrator.poll(provider, task_id)
        polls += 1
        if status.status is not last:
            console.print(f"[bold]Status[/bold] {format_status(status.status.value)}")
            last = status.status
        if not wait or status.status.is_terminal or polls >= max_polls:
            return status
        await anyio.sleep(interval)


def _run(coro_fn: Any) -> Any:
    """Run `coro_fn(services)` with a fresh service bundle, mapping domain errors."""

    async def _main() -> Any:
        services = build_video_services(get_settings())
        try:
            return await coro_fn(services)
        finally:
            await services.aclose()

    try:
        return anyio.run(_main)
    except DomainError as exc:
        raise click.ClickException(f"{exc.error}: {exc}") from exc


@click.command()
@click.option("--provider", required=True, type=click.Choice(_PROVIDERS))
@click.option("--prompt", default="", help="Text prompt")
@click.option("--image", "images", multiple=True, help="Reference image URL (repeatable, max 7)")
@click.option("--video", "reference_video", default=None, help="Reference video URL (kling-o1 edits)")
@click.option("--mode", "video_mode", default=None, type=click.Choice(_MODES), help="Force a video mode")
@click.option("--duration", default=None, type=int, help="Duration in seconds")
@click.option("--aspect-ratio", default=None, help="e.g. 16:9")
@click.option("--resolution", default=None, help="e.g. 720p")
@click.option("--wait/--no-wait", default=False, show_default=True, help="Poll until terminal")
@click.option("--interval", default=5.0, show_default=True, type=float, help="Poll interval in seconds")
@click.option("--max-polls", default=120, show_default=True, type=int)
def submit(
    provider: str,
    prompt: str,
    images: tuple[str, ...],
    reference_video: str | None,
    video_mode: str | None,
    duration: int | None,
    aspect_ratio: str | None,
    resolution: str | None,
    wait: bool,
    interval: float,
    max_polls: int,
) -> None:
    """Submit a generation task and print its handle."""
    request = GenerationRequest(
        provider=provider,
        prompt=prompt,
        reference_images=list(images),
        reference_video=reference_video,
        video_mode=video_mode,
        duration=duration,
        aspect_ratio=aspect_ratio,
        resolution=resolution,
    )

    async def _submit(services: VideoServices) -> tuple[dict[str, Any], TaskStatus | None]:
        handle = await services.orchestrator.submit(request)
        if not wait:
            return handle.to_dict(), None
        status = await _poll_until_done(
            services, provider, handle.task_id, wait=True, interval=interval, max_polls=max_polls
        )
        return handle.to_dict(), status

    handle, status = _run(_submit)
    render_task_status(handle, title="Submitted")
    if status is not None:
        render_task_status(status.to_dict(), title="Result")


@click.command()
@click.argument("provider", type=click.Choice(_PROVIDERS))
@click.argument("task_id")
@click.option("--wait/--no-wait", default=False, show_default=True, help="Poll until terminal")
@click.option("--interval", default=5.0, show_default=True, type=float, help="Poll interval in seconds")
@click.option("--max-polls", default=120, show_default=True, type=int)
def poll(provider: str, task_id: str, wait: bool, interval: float, max_polls: int) -> None:
    """Poll TASK_ID at PROVIDER; succeeded tasks report the relocated URL."""

    async def _poll(services: VideoServices) -> TaskStatus:
        return await _poll_until_done(
            services, provider, task_id, wait=wait, interval=interval, max_polls=max_polls
        )

    status = _run(_poll)
    render_task_status(status.to_dict(), title=f"{provider} {task_id}")
    if status.status is TaskState.FAILED:
        raise SystemExit(1)


def register(cli: click.Group) -> None:
    cli.add_command(submit)
    cli.add_command(poll)
