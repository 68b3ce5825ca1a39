"""HTTP callback dispatcher for the SSH gateway webhook."""

import time
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any

import structlog
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response
from starlette.routing import Route

from .auth import AuthDecision, CredentialValidator
from .config import DEFAULT_SHELL_COMMAND, WebhookConfig
from .directory import Directory
from .monitoring import (
    get_health_data,
    get_prometheus_metrics,
    new_metrics_data,
    record_callback,
)
from .schema import (
    ConfigRequest,
    PasswordAuthRequest,
    PublicKeyAuthRequest,
    decode_password,
    encode_auth_response,
    encode_config_response,
)
from .target import ConfigResolutionError, TargetResolver, UserNotFound

logger = structlog.get_logger()

HandlerResult = tuple[Response, str]


def callback_access_log(
    callback: str,
) -> Callable[
    [Callable[[Any, Request], Awaitable[HandlerResult]]],
    Callable[[Any, Request], Awaitable[Response]],
]:
    """Decorator to add access logging and metrics to callback handlers.

    The wrapped handler returns the response together with an outcome label.
    """

    def decorator(
        func: Callable[[Any, Request], Awaitable[HandlerResult]],
    ) -> Callable[[Any, Request], Awaitable[Response]]:
        @wraps(func)
        async def wrapper(self: "CallbackDispatcher", request: Request) -> Response:
            start_time = time.time()
            try:
                response, outcome = await func(self, request)
            except Exception as e:
                duration_ms = round((time.time() - start_time) * 1000, 2)
                logger.error(
                    f"Callback failed: {callback}",
                    callback=callback,
                    duration_ms=duration_ms,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                record_callback(self.metrics_data, callback, "error", duration_ms)
                raise

            duration_ms = round((time.time() - start_time) * 1000, 2)
            logger.info(
                f"Callback completed: {callback}",
                callback=callback,
                outcome=outcome,
                status=response.status_code,
                duration_ms=duration_ms,
            )
            record_callback(self.metrics_data, callback, outcome, duration_ms)
            return response

        return wrapper

    return decorator


def bad_request() -> HandlerResult:
    return JSONResponse({"error": "Bad request"}, status_code=400), "bad_request"


def auth_result(decision: AuthDecision) -> HandlerResult:
    outcome = "accepted" if decision.accepted else "rejected"
    return JSONResponse(encode_auth_response(decision)), outcome


class CallbackDispatcher:
    """Decodes gateway callbacks, runs the validator or resolver, encodes the answer.

    All collaborators are passed in, so several dispatchers can coexist in one
    process (tests build one per case).
    """

    def __init__(
        self,
        directory: Directory,
        validator: CredentialValidator,
        resolver: TargetResolver,
        shell_command: list[str] | None = None,
        metrics_data: dict[str, Any] | None = None,
    ):
        self.directory = directory
        self.validator = validator
        self.resolver = resolver
        self.shell_command = list(shell_command or DEFAULT_SHELL_COMMAND)
        if metrics_data is None:
            metrics_data = new_metrics_data(directory.user_count, directory.cluster_count)
        self.metrics_data = metrics_data

    @classmethod
    def from_config(cls, config: WebhookConfig) -> "CallbackDispatcher":
        """Build the directory and all collaborators from a loaded configuration."""
        directory = Directory.from_config(config)
        return cls(
            directory=directory,
            validator=CredentialValidator(directory),
            resolver=TargetResolver(directory),
            shell_command=config.shell_command,
        )

    @callback_access_log("password")
    async def handle_password(self, request: Request) -> HandlerResult:
        try:
            req = PasswordAuthRequest.from_json(await request.json())
        except ValueError as e:
            logger.warning("Failed to decode password auth request", error=str(e))
            return bad_request()

        logger.info(
            "Password auth request received",
            username=req.username,
            remote_address=req.remote_address,
            connection_id=req.connection_id,
        )

        password = decode_password(req.password_base64)
        if password is None:
            # Reported to the gateway exactly like a wrong password
            logger.warning("Password auth rejected: invalid base64", username=req.username)
            return auth_result(AuthDecision.reject())

        decision = self.validator.validate_password(req.username, password)
        if decision.accepted:
            logger.info(
                "Password auth successful",
                username=req.username,
                connection_id=req.connection_id,
            )
        return auth_result(decision)

    @callback_access_log("pubkey")
    async def handle_public_key(self, request: Request) -> HandlerResult:
        try:
            req = PublicKeyAuthRequest.from_json(await request.json())
        except ValueError as e:
            logger.warning("Failed to decode public key auth request", error=str(e))
            return bad_request()

        logger.info(
            "Public key auth request received",
            username=req.username,
            remote_address=req.remote_address,
            connection_id=req.connection_id,
        )

        decision = self.validator.validate_public_key(req.username, req.public_key)
        if decision.accepted:
            logger.info(
                "Public key auth successful",
                username=req.username,
                connection_id=req.connection_id,
            )
        return auth_result(decision)

    @callback_access_log("config")
    async def handle_config(self, request: Request) -> HandlerResult:
        try:
            req = ConfigRequest.from_json(await request.json())
        except ValueError as e:
            logger.warning("Failed to decode config request", error=str(e))
            return bad_request()

        logger.info(
            "Config request received",
            username=req.username,
            authenticated_username=req.authenticated_username,
            connection_id=req.connection_id,
        )

        try:
            user = self.directory.find_user(req.authenticated_username)
            if user is None:
                raise UserNotFound("User not found", req.authenticated_username)
            target = self.resolver.resolve(AuthDecision.accept(user))
        except ConfigResolutionError as e:
            logger.warning(
                "Config resolution failed",
                username=req.authenticated_username,
                reason=type(e).__name__,
                error=e.message,
            )
            return JSONResponse({"error": e.message}, status_code=e.status_code), "failed"

        logger.info(
            "Configuration returned",
            username=req.authenticated_username,
            cluster=target.cluster.name,
            namespace=target.namespace,
            pod=target.pod_name,
            container=target.container_name,
        )
        body = encode_config_response(req, target, self.shell_command)
        return JSONResponse(body), "resolved"

    async def handle_health(self, request: Request) -> Response:
        return JSONResponse(get_health_data(self.metrics_data))

    async def handle_metrics(self, request: Request) -> Response:
        return PlainTextResponse(get_prometheus_metrics(self.metrics_data))

    def routes(self) -> list[Route]:
        return [
            Route("/password", self.handle_password, methods=["POST"]),
            Route("/pubkey", self.handle_public_key, methods=["POST"]),
            Route("/config", self.handle_config, methods=["POST"]),
            Route("/health", self.handle_health, methods=["GET"]),
            Route("/metrics", self.handle_metrics, methods=["GET"]),
        ]


def create_app(dispatcher: CallbackDispatcher) -> Starlette:
    """Create the ASGI application serving a dispatcher's routes."""
    return Starlette(routes=dispatcher.routes())
