"""Service métier du catalogue de ressources.

Responsabilités:
- Lectures publiques (ressources approuvées et actives) et lectures admin.
- Soumissions publiques (validation, limitation globale, routage événements → candidats).
- Opérations d'administration (bascule, sauvegarde, suppression, modération, promotion).
- Suivi des clics, sans jamais bloquer l'appelant.
"""

from __future__ import annotations

import time
import uuid
from datetime import UTC, datetime, timedelta

import structlog
from pydantic import BaseModel
from sqlalchemy.engine import Engine

from howdoihelp.domain.resources import EventCandidate, Resource, ResourceCategory, UserAnswers
from howdoihelp.infra.repo.db import session_scope
from howdoihelp.infra.repo.resource_repo import ClickRepo, EventCandidateRepo, ResourceRepo

log = structlog.get_logger(__name__)

MAX_TITLE_LEN = 200
MAX_DESCRIPTION_LEN = 1000
RATE_LIMIT_WINDOW = timedelta(hours=1)


class SubmissionError(ValueError):
    """Soumission publique invalide."""


class SubmissionRateLimited(SubmissionError):
    """Trop de soumissions en attente sur la dernière heure."""


class SubmissionInput(BaseModel):
    """Soumission publique d'une ressource."""

    title: str
    description: str = ""
    url: str
    source_org: str = ""
    category: ResourceCategory
    location: str = "Global"
    event_date: str | None = None
    submitted_by: str


def _short_id(prefix: str, rand_len: int) -> str:
    return f"{prefix}-{int(time.time() * 1000)}-{uuid.uuid4().hex[:rand_len]}"


class CatalogService:
    """Façade transactionnelle sur les dépôts du catalogue."""

    def __init__(self, engine: Engine, rate_limit_per_hour: int = 20) -> None:
        """Initialise le service.

        Paramètres:
        - engine: moteur SQLAlchemy partagé.
        - rate_limit_per_hour: nombre maximal de soumissions en attente sur une heure glissante.
        """
        self.engine = engine
        self.rate_limit_per_hour = rate_limit_per_hour

    # ─── Lectures publiques ─────────────────────────────────

    def public_resources(self, category: str | None = None) -> list[Resource]:
        with session_scope(self.engine) as s:
            return ResourceRepo(s).list_public(category)

    # ─── Soumissions ────────────────────────────────────────

    def submit(self, payload: SubmissionInput, now: datetime | None = None) -> str:
        """Valide et enregistre une soumission; retourne l'id créé.

        Les événements partent dans `event_candidates` pour évaluation, le reste dans
        `resources` en attente et désactivé.
        """
        if not payload.title or not payload.url or not payload.submitted_by:
            raise SubmissionError("Title, URL, and your name are required.")
        if len(payload.title) > MAX_TITLE_LEN or len(payload.description) > MAX_DESCRIPTION_LEN:
            raise SubmissionError("Title or description too long.")

        now = now or datetime.now(UTC)
        with session_scope(self.engine) as s:
            resources = ResourceRepo(s)
            if resources.count_pending_since(now - RATE_LIMIT_WINDOW) >= self.rate_limit_per_hour:
                raise SubmissionRateLimited("Too many recent submissions. Please try again later.")

            location = (payload.location or "Global").strip()
            if payload.category == "events":
                candidate_id = _short_id("cand-submission", 6)
                EventCandidateRepo(s).add(
                    EventCandidate(
                        id=candidate_id,
                        title=payload.title.strip(),
                        description=(payload.description or "").strip(),
                        url=payload.url.strip(),
                        source="submission",
                        source_id=candidate_id,
                        source_org=(payload.source_org or "").strip() or None,
                        location=location,
                        event_date=payload.event_date or None,
                        submitted_by=payload.submitted_by.strip(),
                        status="pending",
                        created_at=now,
                    )
                )
                log.info("submission_received", kind="event_candidate", id=candidate_id)
                return candidate_id

            resource_id = _short_id("sub", 6)
            resources.add(
                Resource(
                    id=resource_id,
                    title=payload.title.strip(),
                    description=(payload.description or "").strip(),
                    url=payload.url.strip(),
                    source_org=(payload.source_org or "").strip(),
                    category=payload.category,
                    location=location,
                    min_minutes=5,
                    ev_general=0.3,
                    friction=0.1,
                    enabled=False,
                    status="pending",
                    event_date=payload.event_date or None,
                    created_at=now,
                    submitted_by=payload.submitted_by.strip(),
                )
            )
            log.info("submission_received", kind="resource", id=resource_id)
            return resource_id

    # ─── Clics ──────────────────────────────────────────────

    def track_click(
        self,
        resource_id: str,
        variant: str,
        answers: UserAnswers | None = None,
        geo_country: str | None = None,
    ) -> bool:
        """Enregistre un clic; un échec est journalisé mais jamais propagé."""
        intents: list[str] = []
        if answers is not None:
            intents = list(answers.intents or ([answers.intent] if answers.intent else []))
        try:
            with session_scope(self.engine) as s:
                ClickRepo(s).add(
                    resource_id=resource_id,
                    variant=variant,
                    user_time=answers.time if answers else None,
                    user_intents=intents,
                    geo_country=geo_country,
                )
        except Exception as exc:
            log.warning("click_tracking_failed", resource_id=resource_id, error=str(exc))
            return False
        return True

    # ─── Administration ─────────────────────────────────────

    def all_resources(self, category: str | None = None) -> list[Resource]:
        with session_scope(self.engine) as s:
            return ResourceRepo(s).list_all(category)

    def toggle_enabled(self, resource_id: str, enabled: bool) -> None:
        with session_scope(self.engine) as s:
            if not ResourceRepo(s).set_enabled(resource_id, enabled):
                raise KeyError("resource_not_found")

    def save(self, resource: Resource) -> None:
        """Crée ou met à jour (upsert sur l'id) avec les valeurs par défaut de vérification."""
        values = resource.model_copy(
            update={
                "activity_score": 0.5 if resource.activity_score is None else resource.activity_score,
                "url_status": resource.url_status or "unknown",
            }
        )
        with session_scope(self.engine) as s:
            ResourceRepo(s).upsert(values)

    def delete(self, resource_id: str) -> None:
        with session_scope(self.engine) as s:
            if not ResourceRepo(s).delete(resource_id):
                raise KeyError("resource_not_found")

    def approve(self, resource_id: str) -> None:
        with session_scope(self.engine) as s:
            if not ResourceRepo(s).set_status(resource_id, "approved", enabled=True):
                raise KeyError("resource_not_found")

    def reject(self, resource_id: str) -> None:
        with session_scope(self.engine) as s:
            if not ResourceRepo(s).set_status(resource_id, "rejected", enabled=False):
                raise KeyError("resource_not_found")

    def candidates(self, status: str | None = None) -> list[EventCandidate]:
        with session_scope(self.engine) as s:
            return EventCandidateRepo(s).list_by_status(status)

    def promote_candidate(self, candidate_id: str, now: datetime | None = None) -> str:
        """Promeut un candidat en ressource `events` approuvée; retourne l'id de ressource."""
        now = now or datetime.now(UTC)
        with session_scope(self.engine) as s:
            candidates = EventCandidateRepo(s)
            candidate = candidates.get(candidate_id)
            if candidate is None:
                raise KeyError("candidate_not_found")

            resource_id = _short_id(f"eval-{candidate.source}", 4)
            ResourceRepo(s).add(
                Resource(
                    id=resource_id,
                    title=candidate.title or candidate.ai_summary or "",
                    description=candidate.ai_summary or candidate.description or "",
                    url=candidate.url,
                    source_org=candidate.source_org or candidate.source,
                    category="events",
                    location=candidate.location or "Global",
                    min_minutes=60,
                    ev_general=candidate.ai_suggested_ev or 0.5,
                    friction=candidate.ai_suggested_friction or 0.2,
                    enabled=True,
                    status="approved",
                    event_date=candidate.event_date,
                    event_type=candidate.ai_event_type,
                    activity_score=0.9,
                    url_status="reachable",
                    source=candidate.source,
                    source_id=candidate.source_id,
                    created_at=now,
                )
            )
            candidates.mark_promoted(candidate_id, resource_id, now)
        log.info("candidate_promoted", candidate_id=candidate_id, resource_id=resource_id)
        return resource_id

    def reject_candidate(self, candidate_id: str) -> None:
        with session_scope(self.engine) as s:
            if not EventCandidateRepo(s).set_status(candidate_id, "rejected"):
                raise KeyError("candidate_not_found")
