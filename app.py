import json
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import Settings
from errors import InvalidSignature, WebhookError
from ingest import WebhookIngestor
from logging_setup import get_logger
from signature import SIGNATURE_HEADER, verify
from store import PostgresStore, Store, create_pool

logger = get_logger(__name__)

INTERNAL_ERROR = {"error": "Internal server error"}


def create_app(settings: Settings, store: Store | None = None) -> FastAPI:
    """
    Build the webhook service.

    When *store* is omitted the app opens an asyncpg pool to Supabase on
    startup and closes it on shutdown.
    """
    app = FastAPI(title="OpenPhone Contact Sync")
    app.state.settings = settings
    app.state.pool = None
    app.state.ingestor = WebhookIngestor(store) if store is not None else None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def startup_db():
        if app.state.ingestor is None:
            app.state.pool = await create_pool(settings)
            app.state.ingestor = WebhookIngestor(PostgresStore(app.state.pool))

        logger.info(f"Server running on port {settings.port}")
        logger.info(f"Health check available at http://localhost:{settings.port}/health")
        logger.info(
            f"OpenPhone webhook endpoint at http://localhost:{settings.port}/webhook/openphone"
        )

    @app.on_event("shutdown")
    async def shutdown_db():
        if app.state.pool is not None:
            await app.state.pool.close()
            app.state.pool = None

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.error("Unhandled error", exc_info=exc, extra={"path": request.url.path})
        return JSONResponse(status_code=500, content=INTERNAL_ERROR)

    # ---------- Health check ----------
    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}

    # ---------- OpenPhone webhook ----------
    @app.post("/webhook/openphone")
    async def openphone_webhook(request: Request):
        """
        OpenPhone POSTs call and message events here as JSON:
        {"type": "...", "data": {"phoneNumber": "...", ...}}
        """
        try:
            raw_body = await request.body()
            signature = request.headers.get(SIGNATURE_HEADER)
            secret = settings.openphone_webhook_secret

            # Only checked when both a secret is configured and a header sent
            if secret and signature:
                if not verify(raw_body, signature, secret):
                    raise InvalidSignature()

            webhook_data = json.loads(raw_body) if raw_body else {}
            logger.info("Received OpenPhone webhook", extra={"payload": webhook_data})

            if isinstance(webhook_data, dict):
                event_type = webhook_data.get("type")
                event_data = webhook_data.get("data")
            else:
                event_type = event_data = None

            await request.app.state.ingestor.process(event_type, event_data)
        except WebhookError as exc:
            logger.warning(
                exc.message,
                extra={"operation": "openphone_webhook", "status_code": exc.status_code},
            )
            return JSONResponse(status_code=exc.status_code, content={"error": exc.message})
        except Exception:
            logger.exception(
                "Error processing OpenPhone webhook",
                extra={"operation": "openphone_webhook"},
            )
            return JSONResponse(status_code=500, content=INTERNAL_ERROR)

        return {"success": True, "message": "Webhook processed successfully"}

    return app
