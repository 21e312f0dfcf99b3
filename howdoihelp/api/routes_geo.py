"""
Route de géolocalisation du visiteur.

Expose `/geo`, qui exécute la chaîne de résolution IP → fuseau local pour l'adresse du visiteur et
renvoie la `GeoData` (avec l'indicateur `isAuthoritarian` utilisé par la politique de contenu).
"""

from fastapi import APIRouter, Depends

from howdoihelp.api.deps import visitor_ip
from howdoihelp.core.container import container
from howdoihelp.services.geo_resolver import resolve_visitor_geo

router = APIRouter(tags=["geo"])


@router.get("/geo")
async def get_geo(ip: str | None = Depends(visitor_ip)):
    """Résout la localisation approximative; ne renvoie jamais d'erreur."""
    geo = await resolve_visitor_geo(container.geo_resolver, ip)
    return geo.to_public()
