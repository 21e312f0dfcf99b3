"""
Route attrape-tout des liens de referral (affiliés, créateurs).

Les routes statiques sont montées avant celle-ci et restent prioritaires: elle ne reçoit que les
slugs inconnus (hors préfixes de l'API, qui répondent 404), mémorise le slug dans un cookie de session puis redirige vers l'accueil.
"""

import structlog
from fastapi import APIRouter, HTTPException
from fastapi.responses import RedirectResponse

from howdoihelp.app.metrics import KNOWN_ROUTES, REFERRALS_TOTAL
from howdoihelp.core.http_constants import HTTP_NOT_FOUND, HTTP_TEMPORARY_REDIRECT

REF_COOKIE = "hdih_ref"

router = APIRouter(tags=["referral"])
log = structlog.get_logger(__name__)


@router.get("/{slug}", include_in_schema=False)
def referral(slug: str):
    """Mémorise le slug de referral (cookie de session, sans max-age) et redirige vers `/`."""
    if "/" + slug in KNOWN_ROUTES:
        raise HTTPException(status_code=HTTP_NOT_FOUND, detail="not_found")
    response = RedirectResponse(url="/", status_code=HTTP_TEMPORARY_REDIRECT)
    response.set_cookie(REF_COOKIE, slug, path="/", samesite="lax")
    REFERRALS_TOTAL.inc()
    log.info("referral_landed", ref=slug)
    return response
