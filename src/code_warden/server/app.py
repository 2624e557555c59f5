"""Starlette ASGI application: live updates over websocket plus a JSON API."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route, WebSocketRoute
from starlette.websockets import WebSocket, WebSocketDisconnect

from ..config import WardenConfig
from ..diff import compute_delta
from ..exceptions import InvalidBundleError, ScanInProgressError, SnapshotError
from ..pipeline import ScanPipeline
from ..snapshot import SnapshotBundle, SnapshotStore
from ..work import WorkStore
from .hub import LiveUpdateHub

logger = logging.getLogger(__name__)


def create_app(
    config: WardenConfig,
    store: SnapshotStore | None = None,
    work_store: WorkStore | None = None,
    hub: LiveUpdateHub | None = None,
) -> Starlette:
    """Build the Starlette application wired to *config*'s data directory.

    Args:
        config: Loaded configuration; its repositories are the only valid slugs
        store: Snapshot store (defaults to one on ``config.data_path``)
        work_store: Work document store (same default)
        hub: Live update hub (created when omitted)
    """
    store = store or SnapshotStore(config.data_path)
    work_store = work_store or WorkStore(config.data_path)
    hub = hub or LiveUpdateHub(
        config.is_known_slug,
        queue_size=config.hub_queue_size,
        max_message_bytes=config.max_message_bytes,
    )
    pipeline = ScanPipeline(config, store, work_store, hub)

    def _unknown(slug: str) -> JSONResponse:
        return JSONResponse({"error": f"Unknown repository: {slug}"}, status_code=404)

    def _not_found(exc: SnapshotError) -> JSONResponse:
        return JSONResponse({"error": exc.message}, status_code=404)

    async def api_repos(request: Request) -> JSONResponse:
        repos = []
        for repo in config.repos:
            timestamps = store.list_timestamps(repo.slug)
            repos.append(
                {
                    "slug": repo.slug,
                    "path": repo.path,
                    "branch": repo.branch,
                    "snapshots": len(timestamps),
                    "latest": timestamps[0] if timestamps else None,
                }
            )
        return JSONResponse({"repos": repos})

    async def api_snapshots(request: Request) -> JSONResponse:
        slug = request.path_params["slug"]
        if not config.is_known_slug(slug):
            return _unknown(slug)
        return JSONResponse({"slug": slug, "timestamps": store.list_timestamps(slug)})

    async def api_latest(request: Request) -> JSONResponse:
        slug = request.path_params["slug"]
        if not config.is_known_slug(slug):
            return _unknown(slug)
        branch = request.query_params.get("branch")
        try:
            loaded = store.latest_for_branch(slug, branch) if branch else store.latest(slug)
        except SnapshotError as exc:
            return _not_found(exc)
        return JSONResponse({"timestamp": loaded.timestamp, "bundle": loaded.bundle.to_dict()})

    async def api_delta(request: Request) -> JSONResponse:
        slug = request.path_params["slug"]
        if not config.is_known_slug(slug):
            return _unknown(slug)
        try:
            current = store.latest(slug)
            previous = store.previous(slug)
        except SnapshotError as exc:
            return _not_found(exc)
        if previous is None:
            return JSONResponse({"current": current.timestamp, "previous": None, "delta": None})
        return JSONResponse(
            {
                "current": current.timestamp,
                "previous": previous.timestamp,
                "delta": compute_delta(previous.bundle, current.bundle).to_dict(),
            }
        )

    async def api_work(request: Request) -> JSONResponse:
        slug = request.path_params["slug"]
        if not config.is_known_slug(slug):
            return _unknown(slug)
        docs = work_store.load_all(slug)
        status = request.query_params.get("status")
        if status:
            docs = [d for d in docs if d.status == status]
        return JSONResponse({"slug": slug, "documents": [d.to_dict() for d in docs]})

    async def api_ingest(request: Request) -> JSONResponse:
        """Accept a collected bundle and run it through the scan pipeline."""
        slug = request.path_params["slug"]
        if not config.is_known_slug(slug):
            return _unknown(slug)
        try:
            bundle = SnapshotBundle.from_dict(await request.json())
        except (ValueError, TypeError, AttributeError) as exc:
            logger.warning("Rejected bundle for %s: %s", slug, exc)
            return JSONResponse({"error": f"Invalid bundle: {exc}"}, status_code=400)
        try:
            result = await run_in_threadpool(pipeline.ingest, slug, bundle, None, False)
        except ScanInProgressError as exc:
            logger.info("Scan of %s already running, rejecting ingest", slug)
            return JSONResponse({"error": exc.message}, status_code=409)
        except InvalidBundleError as exc:
            logger.warning("Rejected bundle for %s: %s", slug, exc.reason)
            return JSONResponse({"error": exc.message}, status_code=400)
        return JSONResponse(result.to_dict(), status_code=201)

    async def websocket_endpoint(websocket: WebSocket) -> None:
        await websocket.accept()
        queue: asyncio.Queue[Any] = asyncio.Queue(maxsize=config.hub_queue_size)

        with hub.connection(queue, asyncio.get_running_loop()) as subscriber:

            async def receive() -> None:
                while True:
                    message = await websocket.receive()
                    if message["type"] == "websocket.disconnect":
                        return
                    raw = message.get("text")
                    if raw is None:
                        raw = message.get("bytes")
                    hub.handle_message(subscriber, raw)

            async def send() -> None:
                while True:
                    event = await queue.get()
                    await websocket.send_text(json.dumps(event))

            tasks = [asyncio.create_task(receive()), asyncio.create_task(send())]
            try:
                await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            except (WebSocketDisconnect, asyncio.CancelledError):
                pass
            finally:
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)

        try:
            await websocket.close()
        except (RuntimeError, WebSocketDisconnect):
            # already closed by the peer
            pass

    app = Starlette(
        routes=[
            Route("/api/repos", api_repos),
            Route("/api/repos/{slug}/snapshots", api_snapshots),
            Route("/api/repos/{slug}/latest", api_latest),
            Route("/api/repos/{slug}/delta", api_delta),
            Route("/api/repos/{slug}/work", api_work),
            Route("/api/repos/{slug}/ingest", api_ingest, methods=["POST"]),
            WebSocketRoute("/ws", websocket_endpoint),
        ],
    )
    app.state.hub = hub
    app.state.pipeline = pipeline
    return app
