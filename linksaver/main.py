import logging
import os
from contextlib import contextmanager
from datetime import timedelta
from typing import Any, List, Optional

from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from .auth import AuthService
from .config import Settings
from .errors import NotFound, ServerError, StorageError, install_error_handlers
from .links import LinkService
from .models import CurrentUser, Link
from .storage import JsonFileRepository, Repository

logger = logging.getLogger(__name__)


class CredentialsIn(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class LinkIn(BaseModel):
    url: Optional[str] = None
    tags: Optional[List[str]] = None


class ReorderIn(BaseModel):
    orderedLinkIds: Any = None


@contextmanager
def store_errors(message: str):
    try:
        yield
    except StorageError as exc:
        logger.exception("%s", message)
        raise ServerError(message) from exc


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_link_service(request: Request) -> LinkService:
    return request.app.state.link_service


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    # "<scheme> <token>"; a wrong scheme still yields a token that fails verification
    parts = (authorization or "").split()
    if len(parts) < 2:
        return None
    return parts[1]


def get_current_user(
    request: Request,
    auth: AuthService = Depends(get_auth_service),
) -> CurrentUser:
    token = bearer_token(request.headers.get("Authorization"))
    request.state.user = auth.authenticate(token)
    return request.state.user


def create_app(settings: Optional[Settings] = None, repo: Optional[Repository] = None) -> FastAPI:
    settings = settings or Settings()
    if not settings.jwt_secret:
        raise RuntimeError("LINKSAVER_JWT_SECRET is not set.")
    repo = repo or JsonFileRepository(settings.db_file)

    app = FastAPI(title="LinkSaver")
    app.state.settings = settings
    app.state.auth_service = AuthService(
        repo, settings.jwt_secret, timedelta(minutes=settings.token_ttl_minutes)
    )
    app.state.link_service = LinkService(repo, settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)

    frontend = settings.frontend_dir
    if os.path.isdir(frontend):
        # Serve static assets (JS, CSS)
        app.mount("/static", StaticFiles(directory=frontend), name="static")

        @app.get("/", include_in_schema=False)
        def serve_index():
            return FileResponse(os.path.join(frontend, "index.html"))
    else:
        logger.warning("Frontend directory %s not found, serving API only", frontend)

    @app.post("/api/register", status_code=status.HTTP_201_CREATED)
    def register(body: CredentialsIn, auth: AuthService = Depends(get_auth_service)):
        with store_errors("Server error during registration."):
            auth.register(body.email, body.password)
        return {"message": "User registered successfully."}

    @app.post("/api/login")
    def login(body: CredentialsIn, auth: AuthService = Depends(get_auth_service)):
        with store_errors("Server error during login."):
            token = auth.login(body.email, body.password)
        return {"accessToken": token}

    @app.get("/api/links")
    def list_links(
        tag: Optional[str] = None,
        user: CurrentUser = Depends(get_current_user),
        links: LinkService = Depends(get_link_service),
    ):
        with store_errors("Failed to retrieve links."):
            result = links.list(user.id, tag=tag)
        return [link.model_dump(by_alias=True) for link in result]

    @app.post("/api/links", status_code=status.HTTP_201_CREATED)
    def add_link(
        body: LinkIn,
        user: CurrentUser = Depends(get_current_user),
        links: LinkService = Depends(get_link_service),
    ):
        with store_errors("Failed to save link and generate summary."):
            link: Link = links.create(user.id, body.url, body.tags)
        return link.model_dump(by_alias=True)

    @app.put("/api/links/reorder")
    def reorder_links(
        body: ReorderIn,
        user: CurrentUser = Depends(get_current_user),
        links: LinkService = Depends(get_link_service),
    ):
        with store_errors("Failed to reorder links."):
            links.reorder(user.id, body.orderedLinkIds)
        return {"message": "Links reordered successfully."}

    @app.delete("/api/links/{link_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_link(
        link_id: str,
        user: CurrentUser = Depends(get_current_user),
        links: LinkService = Depends(get_link_service),
    ):
        try:
            parsed_id = int(link_id)
        except ValueError:
            raise NotFound("Link not found or not authorized.")
        with store_errors("Failed to delete link."):
            links.delete(user.id, parsed_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return app
