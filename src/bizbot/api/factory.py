"""FastAPI application factory."""

from fastapi import FastAPI, Request, Response

from bizbot.infra.credentials import CredentialStore
from bizbot.infra.directory import BusinessDirectory, build_directory
from bizbot.infra.settings import Settings
from bizbot.llm.completion import CompletionClient
from bizbot.observability.correlation import (
    CORRELATION_ID_HEADER,
    generate_correlation_id,
    reset_correlation_id,
    set_correlation_id,
)
from bizbot.services.relay_service import RelayPipeline
from bizbot.whatsapp.sender import MessageSender

from .routers import public
from .routes import simulate, webhooks_whatsapp


def create_app(
    settings: Settings | None = None,
    *,
    directory: BusinessDirectory | None = None,
    completion_client: CompletionClient | None = None,
    sender: MessageSender | None = None,
) -> FastAPI:
    """Create the relay app.

    Components not passed in are built from `settings` (read from the
    environment when None). They are kept on app.state for the routes.
    """
    settings = settings or Settings.from_env()
    directory = directory if directory is not None else build_directory(settings)
    completion_client = completion_client or CompletionClient(
        settings, credential_store=CredentialStore(settings.credentials_path)
    )
    sender = sender or MessageSender(settings)

    app = FastAPI(
        title="bizbot relay",
        docs_url=None,
        redoc_url=None,
    )

    app.state.settings = settings
    app.state.directory = directory
    app.state.completion_client = completion_client
    app.state.pipeline = RelayPipeline(directory, completion_client, sender)

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        cid = request.headers.get(CORRELATION_ID_HEADER) or generate_correlation_id()
        token = set_correlation_id(cid)
        try:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = cid
            return response
        finally:
            reset_correlation_id(token)

    app.include_router(public.router)
    app.include_router(webhooks_whatsapp.router)
    app.include_router(simulate.router)

    return app
