"""
Endpoints de santé et d'accueil.

Expose `/health` pour signaler l'état de l'application et du stockage, et `/` comme point
d'arrivée des redirections de referral.
"""

from fastapi import APIRouter

from howdoihelp.core.container import container
from howdoihelp.domain.resources import CATEGORIES

router = APIRouter(tags=["health"])


@router.get("/health")
def health():
    """Vérifie la disponibilité de l'API et le backend de stockage."""
    return {
        "status": "ok",
        "storage": container.storage_backend,
        "database_url": bool(container.settings.DATABASE_URL),
    }


@router.get("/")
def home():
    """Page d'accueil de l'API: nom et catégories consultables."""
    return {"app": container.settings.APP_NAME, "categories": list(CATEGORIES)}
