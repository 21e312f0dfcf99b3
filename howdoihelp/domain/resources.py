"""
Entités du domaine: ressources, candidats d'événements et réponses du parcours.

Ce module définit les modèles de données manipulés par l'API, le classement et les dépôts.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

ResourceCategory = Literal["events", "programs", "letters", "communities", "other"]
ResourceStatus = Literal["approved", "pending", "rejected"]
Variant = Literal["A", "B", "D"]
TimeCommitment = Literal["minutes", "hours", "significant"]
IntentTag = Literal["understand", "connect", "impact", "do_part"]
PositionTag = Literal["ai_tech", "policy_gov", "audience_platform", "donor", "student", "other"]

CATEGORIES: tuple[str, ...] = ("events", "programs", "letters", "communities", "other")
LOCAL_CATEGORIES = frozenset({"events", "communities"})


class Resource(BaseModel):
    """Ressource référencée (événement, communauté, programme, lettre...)."""

    id: str
    title: str
    description: str = ""
    url: str
    source_org: str = ""
    category: ResourceCategory
    location: str = "Global"  # "Global", "Online", "New York, USA", "US"
    min_minutes: int = 5
    # Scores réservés à l'admin
    ev_general: float = 0.5
    ev_positioned: float | None = None
    friction: float = 0.3
    enabled: bool = True
    status: ResourceStatus = "approved"
    event_date: str | None = None  # ISO date
    event_type: str | None = None
    deadline_date: str | None = None  # ISO date
    created_at: datetime | None = None
    submitted_by: str | None = None
    background_tags: list[str] = Field(default_factory=list)
    position_tags: list[str] = Field(default_factory=list)
    # Synchronisation / vérification
    source: str | None = None
    source_id: str | None = None
    verified_at: datetime | None = None
    url_status: str | None = None
    activity_score: float | None = None
    verification_notes: str | None = None


class EventCandidate(BaseModel):
    """Événement en attente d'évaluation avant promotion en ressource."""

    id: str
    title: str
    description: str | None = None
    url: str
    source: str
    source_id: str | None = None
    source_org: str | None = None
    location: str | None = None
    event_date: str | None = None
    submitted_by: str | None = None
    ai_summary: str | None = None
    ai_suggested_ev: float | None = None
    ai_suggested_friction: float | None = None
    ai_event_type: str | None = None
    status: str = "pending"
    promoted_at: datetime | None = None
    promoted_resource_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserAnswers(BaseModel):
    """Réponses du visiteur au questionnaire."""

    time: TimeCommitment
    intents: list[IntentTag] | None = None  # variante B (choix multiple)
    intent: IntentTag | None = None  # variante D (choix unique)
    positioned: bool = False
    position_type: PositionTag | None = None


class ScoredResource(BaseModel):
    """Ressource notée pour un visiteur, avec les raisons affichables."""

    resource: Resource
    score: float
    match_reasons: list[str] = Field(default_factory=list)


class LocalCard(BaseModel):
    """Carte locale repliée: une ressource d'ancrage et des extras proches."""

    anchor: ScoredResource
    extras: list[ScoredResource] = Field(default_factory=list)
    score: float
