"""
Route de soumission publique de ressources.

Les événements partent dans le pipeline de candidats, les autres catégories sont enregistrées en
attente de modération.
"""

from fastapi import APIRouter, HTTPException

from howdoihelp.api.schemas import SubmissionAccepted
from howdoihelp.app.metrics import SUBMISSIONS_TOTAL
from howdoihelp.core.container import container
from howdoihelp.core.http_constants import HTTP_BAD_REQUEST, HTTP_CREATED, HTTP_TOO_MANY_REQUESTS
from howdoihelp.services.catalog import SubmissionError, SubmissionInput, SubmissionRateLimited

router = APIRouter(tags=["submit"])


@router.post("/submit", status_code=HTTP_CREATED, response_model=SubmissionAccepted)
def submit(payload: SubmissionInput):
    """Valide et enregistre une soumission publique."""
    try:
        new_id = container.catalog.submit(payload)
    except SubmissionRateLimited as err:
        raise HTTPException(status_code=HTTP_TOO_MANY_REQUESTS, detail="rate_limited") from err
    except SubmissionError as err:
        raise HTTPException(status_code=HTTP_BAD_REQUEST, detail="validation_error") from err
    SUBMISSIONS_TOTAL.labels(kind="event" if payload.category == "events" else "resource").inc()
    return SubmissionAccepted(id=new_id)
