"""FastAPI application factory for the LaTeX assistant services."""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Final

from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from .backends import Backends, OfflineCompletionBackend
from .clients import ProjectServiceClient
from .config import ServiceSettings
from .diagnostics import DiagnosticLogger
from .exceptions import BackendUnavailableError
from .http import (
    TRACE_ID_HEADER,
    default_error_responses,
    ensure_trace_id,
    get_trace_context,
    http_exception_to_response,
    internal_error_response,
    request_validation_response,
    resolve_trace_id,
    service_error_response,
)
from .metrics import record_request
from .models.completion import CompletionResult
from .persistence import ChatFileStore, CheckpointFileStore
from .registry import SessionRegistry
from .resilience import ResiliencePolicy, ServiceResilienceExecutor
from .routers import api_router
from .routers.health import router as health_router
from .service_errors import ServiceError
from .session import EditSession, EngineOptions
from .settings import BackendSettings

LOGGER = logging.getLogger(__name__)

SERVICE_VERSION: Final[str] = "0.3.0"
_LOCAL_ORIGINS: Final[str] = r"^https?://(?:127\.0\.0\.1|localhost)(?::\d+)?$"


class TraceMiddleware:
    """Tag every request with a trace id and render failures as error envelopes."""

    def __init__(self, app: ASGIApp, *, trace_context: ContextVar[str]) -> None:
        self.app = app
        self._trace_context = trace_context

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive)
        trace_id = resolve_trace_id(request.headers.get(TRACE_ID_HEADER))
        token = self._trace_context.set(trace_id)
        scope.setdefault("state", {})
        scope["state"]["trace_id"] = trace_id  # type: ignore[index]
        observed: list[int] = []

        async def send_with_trace(message: Message) -> None:
            if message["type"] == "http.response.start":
                MutableHeaders(scope=message).setdefault(TRACE_ID_HEADER, trace_id)
                observed.append(message["status"])
            await send(message)

        try:
            await self.app(scope, receive, send_with_trace)
        except Exception as exc:
            response = self._failure_response(exc, request, trace_id)
            observed.append(response.status_code)
            await response(scope, receive, send)
        finally:
            self._trace_context.reset(token)
            record_request(
                request.method,
                observed[0] if observed else status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

    @staticmethod
    def _failure_response(exc: Exception, request: Request, trace_id: str) -> Response:
        if isinstance(exc, ServiceError):
            return service_error_response(exc, trace_id)
        if isinstance(exc, HTTPException):
            return http_exception_to_response(exc, trace_id)
        if isinstance(exc, RequestValidationError):
            return request_validation_response(exc, trace_id)
        LOGGER.exception(
            "Unhandled error processing %s %s",
            request.method,
            request.url.path,
            exc_info=exc,
        )
        return internal_error_response(trace_id)


def build_backends(
    settings: ServiceSettings, backend_settings: BackendSettings
) -> tuple[Backends, ProjectServiceClient | None]:
    """Wire the remote project service in live mode, local stand-ins otherwise."""

    if backend_settings.mode == "live" and backend_settings.project_service_url:
        client = ProjectServiceClient(
            backend_settings.project_service_url,
            token=backend_settings.project_service_token,
            timeout=backend_settings.request_timeout_seconds,
        )
        return Backends(completion=client, checkpoints=client, chat=client), client

    return (
        Backends(
            completion=OfflineCompletionBackend(),
            checkpoints=CheckpointFileStore(settings.data_dir),
            chat=ChatFileStore(settings.data_dir),
        ),
        None,
    )


def build_completion_executor(
    settings: ServiceSettings,
) -> ServiceResilienceExecutor[CompletionResult]:
    """Timeout, retry and circuit-breaker policy wrapped around model completions."""

    policy = ResiliencePolicy(
        name="completion",
        timeout_seconds=float(settings.completion_timeout_seconds),
        max_attempts=max(1, int(settings.completion_retry_attempts) + 1),
        backoff_seconds=0.5,
        circuit_failure_threshold=int(settings.completion_circuit_failure_threshold),
        circuit_reset_seconds=float(settings.completion_circuit_reset_seconds),
    )
    return ServiceResilienceExecutor(policy, retry_on=(BackendUnavailableError,))


def _build_registry(
    settings: ServiceSettings,
    backends: Backends,
    executor: ServiceResilienceExecutor[CompletionResult],
) -> SessionRegistry:
    options = EngineOptions(
        checkpoint_capacity=settings.checkpoint_capacity,
        target_language=settings.target_language,
        preview_min_chars=settings.preview_min_chars,
        preview_size_ratio=settings.preview_size_ratio,
    )

    def _new_session(document_id: str) -> EditSession:
        return EditSession(document_id, backends=backends, options=options, executor=executor)

    return SessionRegistry(_new_session)


def _install_error_handlers(application: FastAPI) -> None:
    """Errors caught inside the router stack still get the envelope and trace id."""

    async def http_exception_handler(_: Request, exc: Exception) -> Response:
        if isinstance(exc, HTTPException):
            return http_exception_to_response(exc, ensure_trace_id())
        return internal_error_response(ensure_trace_id())

    async def validation_exception_handler(_: Request, exc: Exception) -> Response:
        if isinstance(exc, RequestValidationError):
            return request_validation_response(exc, ensure_trace_id())
        return internal_error_response(ensure_trace_id())

    application.add_exception_handler(HTTPException, http_exception_handler)
    application.add_exception_handler(RequestValidationError, validation_exception_handler)


def create_app(
    settings: ServiceSettings | None = None,
    *,
    backend_settings: BackendSettings | None = None,
    backends: Backends | None = None,
) -> FastAPI:
    """Construct the FastAPI application."""

    service_settings = settings or ServiceSettings.from_environment()
    remote_settings = backend_settings or BackendSettings()

    application = FastAPI(
        title="LaTeX Assistant Services",
        version=SERVICE_VERSION,
        responses=default_error_responses(),
    )
    application.state.settings = service_settings
    application.state.backend_settings = remote_settings
    application.state.diagnostics = DiagnosticLogger()
    application.state.service_version = SERVICE_VERSION

    client: ProjectServiceClient | None = None
    if backends is None:
        backends, client = build_backends(service_settings, remote_settings)
    application.state.backends = backends

    executor = build_completion_executor(service_settings)
    application.state.completion_executor = executor
    application.state.session_registry = _build_registry(service_settings, backends, executor)

    if client is not None:
        remote_client = client

        async def _close_client() -> None:
            await remote_client.aclose()

        application.add_event_handler("shutdown", _close_client)

    LOGGER.info(
        "service.configured",
        extra={
            "extra_payload": {
                "mode": remote_settings.mode,
                "data_dir": str(service_settings.data_dir),
                "checkpoint_capacity": service_settings.checkpoint_capacity,
            }
        },
    )

    _install_error_handlers(application)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=[],
        allow_origin_regex=_LOCAL_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(TraceMiddleware, trace_context=get_trace_context())

    application.include_router(health_router)
    application.include_router(api_router)

    @application.get("/", include_in_schema=False)
    async def service_index(request: Request) -> dict[str, str]:
        """Return a lightweight service manifest for manual probes."""

        version = getattr(request.app.state, "service_version", SERVICE_VERSION)
        return {
            "service": "latexai",
            "version": version,
            "api_base": "/api/v1",
        }

    return application


__all__ = [
    "SERVICE_VERSION",
    "TraceMiddleware",
    "build_backends",
    "build_completion_executor",
    "create_app",
]
