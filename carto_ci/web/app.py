"""FastAPI application factory for the webhook receiver.

The orchestrator is registered once, at startup, by the lifespan and
shut down on teardown.  Webhook responses never wait for builds: the
handler returns as soon as the jobs are spawned.
"""

from __future__ import annotations

import asyncio
import hashlib
import hmac
import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Header, HTTPException, Request, status

from carto_ci import __version__
from carto_ci.config import CIConfig
from carto_ci.core.errors import CollaboratorUnavailableError, PublishError
from carto_ci.core.orchestrator import DispatchSummary, Orchestrator

logger = logging.getLogger(__name__)


def verify_signature(secret: str, body: bytes, signature: str | None) -> bool:
    """Check a GitHub ``X-Hub-Signature-256`` header against *body*."""
    if not signature or not signature.startswith("sha256="):
        return False
    expected = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(f"sha256={expected}", signature)


def create_app(
    config: CIConfig | None = None,
    orchestrator: Orchestrator | None = None,
) -> FastAPI:
    """Build the webhook app.

    Parameters
    ----------
    config:
        Service configuration; defaults to ``CIConfig()``.
    orchestrator:
        Pre-built orchestrator (tests).  When omitted one is created at
        startup from *config*.
    """
    settings = config or (orchestrator.config if orchestrator else CIConfig())

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        orch = orchestrator or Orchestrator(settings)
        app.state.orchestrator = orch
        logger.info(
            "Webhook receiver ready for %s (%d matrix legs)",
            settings.repository,
            len(orch.matrix),
        )
        try:
            yield
        finally:
            # In-flight builds are abandoned to process exit
            orch.shutdown(wait=False)
            logger.info("Webhook receiver stopped")

    app = FastAPI(
        title="carto-ci",
        description="Webhook-driven build orchestrator for carto",
        version=__version__,
        lifespan=lifespan,
    )

    @app.get("/health")
    async def health() -> dict[str, object]:
        orch: Orchestrator = app.state.orchestrator
        return {
            "status": "ok",
            "repository": settings.repository,
            "matrix": [spec.target for spec in orch.matrix.entries],
            "github": orch.client is not None,
        }

    @app.post("/webhook", status_code=status.HTTP_202_ACCEPTED)
    async def webhook(
        request: Request,
        x_github_event: str | None = Header(default=None),
        x_hub_signature_256: str | None = Header(default=None),
        x_github_delivery: str | None = Header(default=None),
    ) -> dict[str, object]:
        body = await request.body()

        if settings.webhook_secret and not verify_signature(
            settings.webhook_secret, body, x_hub_signature_256
        ):
            logger.warning("Rejected delivery %s: bad signature", x_github_delivery)
            raise HTTPException(status_code=401, detail="Invalid webhook signature")

        if not x_github_event:
            raise HTTPException(status_code=400, detail="Missing X-GitHub-Event header")

        if x_github_event == "ping":
            return {"action": "pong"}

        try:
            data = json.loads(body or b"{}")
        except ValueError as exc:
            # JSONDecodeError and UnicodeDecodeError both land here
            raise HTTPException(status_code=400, detail=f"Invalid JSON body: {exc}") from exc

        orch: Orchestrator = app.state.orchestrator
        try:
            # Release creation is a blocking HTTP call; keep it off the event loop
            summary: DispatchSummary = await asyncio.to_thread(
                orch.handle_event, {x_github_event: data}
            )
        except CollaboratorUnavailableError as exc:
            logger.error("Delivery %s: %s", x_github_delivery, exc)
            raise HTTPException(status_code=503, detail=str(exc)) from exc
        except PublishError as exc:
            logger.error("Delivery %s: %s", x_github_delivery, exc)
            raise HTTPException(status_code=502, detail=str(exc)) from exc

        return summary.model_dump(mode="json")

    return app
