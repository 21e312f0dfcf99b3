"""
Routes d'administration du catalogue.

La zone `/admin` est déjà filtrée par `AdminGateMiddleware`; chaque endpoint revérifie néanmoins le
cookie via la dépendance `require_admin` (401 `unauthorized`). La connexion compare le mot de passe
saisi à `ADMIN_PASSWORD` puis pose un cookie de session statique.
"""

from collections import Counter

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request, Response

from howdoihelp.api.schemas import AdminOverview, CategoryCount, LoginPayload, TogglePayload
from howdoihelp.core.container import container
from howdoihelp.core.http_constants import HTTP_NOT_FOUND, HTTP_UNAUTHORIZED
from howdoihelp.domain.resources import CATEGORIES, EventCandidate, Resource
from howdoihelp.middlewares.admin_gate import ADMIN_COOKIE, ADMIN_COOKIE_VALUE, has_admin_cookie

router = APIRouter(prefix="/admin", tags=["admin"])
log = structlog.get_logger(__name__)


def require_admin(request: Request) -> None:
    """Dépendance: exige le cookie de session admin."""
    if not has_admin_cookie(request):
        raise HTTPException(status_code=HTTP_UNAUTHORIZED, detail="unauthorized")


def _not_found() -> HTTPException:
    return HTTPException(status_code=HTTP_NOT_FOUND, detail="not_found")


# ─── Session ────────────────────────────────────────────────


@router.get("/login")
def login_required():
    """Cible des redirections de la garde admin."""
    return {"detail": "login_required"}


@router.post("/login")
def login(payload: LoginPayload, response: Response):
    """Vérifie le mot de passe admin et pose le cookie de session (une semaine)."""
    settings = container.settings
    if payload.password.strip() != settings.ADMIN_PASSWORD.strip():
        log.info("admin_login_failed")
        raise HTTPException(status_code=HTTP_UNAUTHORIZED, detail="invalid_password")
    response.set_cookie(
        ADMIN_COOKIE,
        ADMIN_COOKIE_VALUE,
        max_age=settings.ADMIN_COOKIE_MAX_AGE_S,
        path="/",
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )
    log.info("admin_login")
    return {"ok": True}


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(ADMIN_COOKIE, path="/")
    return {"ok": True}


# ─── Tableau de bord ────────────────────────────────────────


@router.get("", response_model=AdminOverview, dependencies=[Depends(require_admin)])
def overview():
    """Comptes par catégorie (total, en attente, actives) et candidats en attente."""
    resources = container.catalog.all_resources()
    totals = Counter(r.category for r in resources)
    pending = Counter(r.category for r in resources if r.status == "pending")
    enabled = Counter(r.category for r in resources if r.enabled)
    return AdminOverview(
        categories=[
            CategoryCount(
                category=c, total=totals[c], pending=pending[c], enabled=enabled[c]
            )
            for c in CATEGORIES
        ],
        pending_candidates=len(container.catalog.candidates("pending")),
    )


# ─── Ressources ─────────────────────────────────────────────


@router.get("/resources", response_model=list[Resource], dependencies=[Depends(require_admin)])
def list_resources(category: str | None = None):
    """Toutes les ressources (catégorie puis `ev_general` décroissant), filtrables."""
    return container.catalog.all_resources(category)


@router.put("/resources", dependencies=[Depends(require_admin)])
def save_resource(resource: Resource):
    """Crée ou met à jour une ressource (upsert sur l'id)."""
    container.catalog.save(resource)
    log.info("resource_saved", id=resource.id)
    return {"id": resource.id}


@router.post("/resources/{resource_id}/toggle", dependencies=[Depends(require_admin)])
def toggle_resource(resource_id: str, payload: TogglePayload):
    try:
        container.catalog.toggle_enabled(resource_id, payload.enabled)
    except KeyError as err:
        raise _not_found() from err
    return {"id": resource_id, "enabled": payload.enabled}


@router.delete("/resources/{resource_id}", dependencies=[Depends(require_admin)])
def delete_resource(resource_id: str):
    """Supprime la ressource et ses clics."""
    try:
        container.catalog.delete(resource_id)
    except KeyError as err:
        raise _not_found() from err
    log.info("resource_deleted", id=resource_id)
    return {"id": resource_id, "deleted": True}


@router.post("/resources/{resource_id}/approve", dependencies=[Depends(require_admin)])
def approve_resource(resource_id: str):
    try:
        container.catalog.approve(resource_id)
    except KeyError as err:
        raise _not_found() from err
    return {"id": resource_id, "status": "approved"}


@router.post("/resources/{resource_id}/reject", dependencies=[Depends(require_admin)])
def reject_resource(resource_id: str):
    try:
        container.catalog.reject(resource_id)
    except KeyError as err:
        raise _not_found() from err
    return {"id": resource_id, "status": "rejected"}


# ─── Candidats événements ───────────────────────────────────


@router.get(
    "/candidates", response_model=list[EventCandidate], dependencies=[Depends(require_admin)]
)
def list_candidates(status: str | None = None):
    """Candidats du plus récent au plus ancien, filtrables par statut."""
    return container.catalog.candidates(status)


@router.post("/candidates/{candidate_id}/promote", dependencies=[Depends(require_admin)])
def promote_candidate(candidate_id: str):
    """Crée une ressource `events` approuvée à partir du candidat."""
    try:
        resource_id = container.catalog.promote_candidate(candidate_id)
    except KeyError as err:
        raise _not_found() from err
    return {"candidate_id": candidate_id, "resource_id": resource_id}


@router.post("/candidates/{candidate_id}/reject", dependencies=[Depends(require_admin)])
def reject_candidate(candidate_id: str):
    try:
        container.catalog.reject_candidate(candidate_id)
    except KeyError as err:
        raise _not_found() from err
    return {"candidate_id": candidate_id, "status": "rejected"}
