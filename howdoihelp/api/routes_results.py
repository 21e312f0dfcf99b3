"""
Routes du parcours visiteur: résultats personnalisés et suivi des clics.

`/results` classe le catalogue pour un visiteur (réponses + localisation) et gère la variante
d'expérience via cookie; `/clicks` enregistre les clics sortants sans jamais échouer.
"""

from fastapi import APIRouter, Cookie, Depends, Response
from starlette.concurrency import run_in_threadpool

from howdoihelp.api.deps import visitor_ip
from howdoihelp.api.schemas import (
    ClickRequest,
    LocalCardResponse,
    PublicResource,
    ResultItem,
    ResultsRequest,
    ResultsResponse,
)
from howdoihelp.core.container import container
from howdoihelp.core.http_constants import HTTP_ACCEPTED
from howdoihelp.domain.ranking import build_local_card, rank_resources
from howdoihelp.domain.resources import ScoredResource
from howdoihelp.domain.utils import format_time, track_url
from howdoihelp.domain.variants import VARIANT_COOKIE, VARIANT_COOKIE_MAX_AGE_S, get_or_assign_variant
from howdoihelp.services.geo_resolver import resolve_visitor_geo

router = APIRouter(tags=["results"])


def _to_item(scored: ScoredResource, variant: str) -> ResultItem:
    resource = scored.resource
    return ResultItem(
        resource=PublicResource(**resource.model_dump()),
        score=round(scored.score, 4),
        match_reasons=scored.match_reasons,
        tracked_url=track_url(resource.url, variant, resource.id),
        time_label=format_time(resource.min_minutes),
    )


@router.post("/results", response_model=ResultsResponse)
async def results(
    payload: ResultsRequest,
    response: Response,
    hdih_variant: str | None = Cookie(default=None),
    ip: str | None = Depends(visitor_ip),
):
    """Classe les ressources pour le visiteur.

    Étapes:
    - Détermine la variante (cookie existant ou tirage, mémorisé 90 jours)
    - Utilise la localisation fournie, sinon la résout par l'IP du visiteur
    - Retourne la liste diversifiée et la carte locale éventuelle
    """
    variant, assigned = get_or_assign_variant(hdih_variant)
    if assigned:
        response.set_cookie(
            VARIANT_COOKIE, variant, max_age=VARIANT_COOKIE_MAX_AGE_S, path="/", samesite="lax"
        )

    geo = payload.geo or await resolve_visitor_geo(container.geo_resolver, ip)
    resources = await run_in_threadpool(container.catalog.public_resources)

    ranked = rank_resources(resources, payload.answers, geo, variant)
    card = build_local_card(resources, payload.answers, geo, variant)
    local_card = None
    if card is not None:
        local_card = LocalCardResponse(
            anchor=_to_item(card.anchor, variant),
            extras=[_to_item(s, variant) for s in card.extras],
            score=round(card.score, 4),
        )
    return ResultsResponse(
        variant=variant,
        geo=geo.to_public(),
        resources=[_to_item(s, variant) for s in ranked],
        local_card=local_card,
    )


@router.post("/clicks", status_code=HTTP_ACCEPTED)
def track_click(payload: ClickRequest):
    """Enregistre un clic (fire-and-forget: l'échec de stockage n'est pas remonté)."""
    container.catalog.track_click(
        payload.resource_id,
        payload.variant,
        answers=payload.answers,
        geo_country=payload.geo_country,
    )
    return {"accepted": True}
