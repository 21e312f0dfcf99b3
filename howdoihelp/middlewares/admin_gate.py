"""Middleware Starlette protégeant les routes d'administration par cookie.

Ce module implémente un contrôle d'accès minimal: toute requête sous `/admin` (hors page de
connexion) doit porter le cookie de session admin avec la valeur attendue, sinon elle est
redirigée vers la page de connexion. Il ne s'agit pas d'un protocole de session: la valeur du
cookie est une chaîne statique.
"""

from collections.abc import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import RedirectResponse
from starlette.types import ASGIApp

from howdoihelp.core.http_constants import HTTP_TEMPORARY_REDIRECT

ADMIN_PREFIX = "/admin"
ADMIN_LOGIN_PATH = "/admin/login"
ADMIN_COOKIE = "admin_session"
ADMIN_COOKIE_VALUE = "authenticated"


def has_admin_cookie(request: Request) -> bool:
    """Vérifie la présence du cookie admin avec la valeur attendue."""
    return request.cookies.get(ADMIN_COOKIE) == ADMIN_COOKIE_VALUE


def is_gated_path(path: str) -> bool:
    """Indique si un chemin relève de la zone admin protégée."""
    if path == ADMIN_LOGIN_PATH:
        return False
    return path == ADMIN_PREFIX or path.startswith(ADMIN_PREFIX + "/")


class AdminGateMiddleware(BaseHTTPMiddleware):
    """Redirige vers la page de connexion les requêtes admin sans cookie valide."""

    def __init__(self, app: ASGIApp, login_path: str = ADMIN_LOGIN_PATH) -> None:
        """Initialise le middleware.

        Args:
            app: Application ASGI à wrapper.
            login_path: Chemin de la page de connexion (cible de la redirection).
        """
        super().__init__(app)
        self.login_path = login_path

    async def dispatch(self, request: Request, call_next: Callable):
        """Laisse passer ou redirige selon le chemin et le cookie."""
        if is_gated_path(request.url.path) and not has_admin_cookie(request):
            return RedirectResponse(url=self.login_path, status_code=HTTP_TEMPORARY_REDIRECT)
        return await call_next(request)
