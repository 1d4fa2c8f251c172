"""Entry point for the replicator service."""

import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.logging_config import set_region, setup_logging
from replicator.bus_client import GrpcBusClient, MessageBus
from replicator.config import REPLICATOR_HOST, REPLICATOR_PORT, ReplicationSettings
from replicator.document_store import DocumentStore, SqliteDocumentStore
from replicator.exceptions import (
    BusUnavailableError,
    MalformedInputError,
    MisconfiguredError,
    RegionSyncException,
    StoreUnavailableError
)
from replicator.replication.applier import ChangeApplier
from replicator.replication.consumer import ChangeConsumer
from replicator.replication.publisher import ChangePublisher
from replicator.routes.event_routes import router as event_router

logger = setup_logging('replicator')


def create_app(
    settings: Optional[ReplicationSettings] = None,
    store: Optional[DocumentStore] = None,
    bus: Optional[MessageBus] = None
) -> FastAPI:
    """
    Build the replicator application.

    Store and bus clients not passed in are created at startup from the
    settings and closed at shutdown. A misconfigured service still starts,
    but refuses every notification.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        resolved = settings or ReplicationSettings.from_env()
        app.state.settings = resolved
        app.state.config_error = None
        app.state.store = None
        app.state.publisher = None
        app.state.consumer = None

        set_region(logger, resolved.region)
        logger.info("Replicator service starting up...")

        try:
            resolved.validate()
        except MisconfiguredError as e:
            logger.error(f"Replicator is misconfigured, refusing all events: {e}")
            app.state.config_error = str(e)
            yield
            logger.info("Replicator service shutting down...")
            return

        owned_store = store is None
        owned_bus = bus is None

        doc_store = store or SqliteDocumentStore(
            resolved.database_path,
            region=resolved.region,
            resource_prefix=resolved.resource_prefix
        )
        bus_client = bus or GrpcBusClient(
            resolved.bus_address,
            topic=resolved.bus_topic,
            timeout=resolved.bus_timeout_seconds
        )

        app.state.store = doc_store
        app.state.publisher = ChangePublisher(doc_store, bus_client, resolved.region, resolved.mode)
        app.state.consumer = ChangeConsumer(ChangeApplier(doc_store, resolved.region, resolved.mode))

        logger.info(
            f"Replication started: region={resolved.region}, mode={resolved.mode.value}, "
            f"bus={resolved.bus_address}"
        )

        try:
            yield
        finally:
            logger.info("Replicator service shutting down...")

            if owned_bus:
                await bus_client.close()
                logger.info("Bus client closed")

            if owned_store:
                doc_store.close()
                logger.info("Document store closed")

    app = FastAPI(
        title="RegionSync Replicator",
        description="Cross-region document replication over a change feed and an ordered bus",
        version="1.0.0",
        lifespan=lifespan
    )

    _register_middleware(app)
    _register_exception_handlers(app)
    _register_health_routes(app)
    app.include_router(event_router)

    return app


def _register_middleware(app: FastAPI) -> None:

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """
        Middleware to log all HTTP requests and responses.
        """
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id

        start_time = time.time()

        logger.info(f"Request started: {request.method} {request.url.path} [request_id={request_id}]")

        response = await call_next(request)

        duration = time.time() - start_time

        logger.info(
            f"Request completed: {request.method} {request.url.path} "
            f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
        )

        response.headers["X-Request-ID"] = request_id

        return response


def _register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(MalformedInputError)
    async def malformed_input_handler(request: Request, exc: MalformedInputError):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.warning(
            f"Malformed input dropped: {exc} [request_id={request_id}] path={request.url.path}"
        )
        return JSONResponse(
            status_code=status.HTTP_200_OK,
            content={"status": "dropped", "detail": str(exc)}
        )

    @app.exception_handler(MisconfiguredError)
    async def misconfigured_handler(request: Request, exc: MisconfiguredError):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.error(
            f"Refusing event, replicator misconfigured: {exc} [request_id={request_id}] path={request.url.path}"
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": str(exc), "code": "MISCONFIGURED"}
        )

    @app.exception_handler(StoreUnavailableError)
    async def store_unavailable_handler(request: Request, exc: StoreUnavailableError):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.error(
            f"Document store unavailable: {exc} [request_id={request_id}] path={request.url.path}",
            exc_info=True
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": str(exc), "code": "STORE_UNAVAILABLE"}
        )

    @app.exception_handler(BusUnavailableError)
    async def bus_unavailable_handler(request: Request, exc: BusUnavailableError):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.error(
            f"Message bus unavailable: {exc} [request_id={request_id}] path={request.url.path}",
            exc_info=True
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": str(exc), "code": "BUS_UNAVAILABLE"}
        )

    @app.exception_handler(RegionSyncException)
    async def regionsync_exception_handler(request: Request, exc: RegionSyncException):
        request_id = getattr(request.state, 'request_id', 'unknown')
        logger.error(
            f"Replication error: {exc} [request_id={request_id}] path={request.url.path}",
            exc_info=True
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": str(exc), "code": "INTERNAL_ERROR"}
        )


def _register_health_routes(app: FastAPI) -> None:

    @app.get("/")
    async def root():
        """
        Root endpoint for health check.
        """
        return {"message": "RegionSync Replicator API", "status": "running"}

    @app.get("/health")
    async def health_check():
        """
        Health check endpoint for container healthchecks.
        """
        return {"status": "healthy", "service": "replicator"}

    @app.get("/ready")
    async def ready_check(request: Request):
        """
        Readiness check endpoint.
        Verifies configuration and document store connectivity.
        """
        config_error = getattr(request.app.state, "config_error", None)
        configuration_status = f"error: {config_error}" if config_error else "ok"

        doc_store = getattr(request.app.state, "store", None)
        if doc_store is None:
            store_status = "not started"
        else:
            try:
                ping = getattr(doc_store, "ping", None)
                if ping is not None:
                    ping()
                store_status = "ok"
            except StoreUnavailableError as e:
                store_status = f"error: {str(e)}"

        ready = configuration_status == "ok" and store_status == "ok"
        status_code = status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE

        return JSONResponse(
            status_code=status_code,
            content={
                "ready": ready,
                "configuration": configuration_status,
                "store": store_status
            }
        )


app = create_app()


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "replicator.main:app",
        host=REPLICATOR_HOST,
        port=REPLICATOR_PORT
    )


if __name__ == "__main__":
    main()
