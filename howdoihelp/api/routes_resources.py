"""
Routes publiques de consultation du catalogue.

Ce module expose les listes par catégorie (ressources approuvées et actives uniquement).
"""

from fastapi import APIRouter

from howdoihelp.api.schemas import PublicResource
from howdoihelp.core.container import container
from howdoihelp.domain.resources import ResourceCategory

router = APIRouter(prefix="/resources", tags=["resources"])


@router.get("/{category}", response_model=list[PublicResource])
def list_category(category: ResourceCategory):
    """Retourne les ressources publiques d'une catégorie, par impact attendu décroissant."""
    return [r.model_dump() for r in container.catalog.public_resources(category)]
