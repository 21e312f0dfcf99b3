# Schémas Pydantic exposés par l'API (requêtes et réponses).

from pydantic import BaseModel, Field

from howdoihelp.domain.geo import GeoData
from howdoihelp.domain.resources import ResourceCategory, UserAnswers, Variant


class PublicResource(BaseModel):
    """Vue publique d'une ressource (sans les scores réservés à l'admin)."""

    id: str
    title: str
    description: str
    url: str
    source_org: str
    category: ResourceCategory
    location: str
    min_minutes: int
    event_date: str | None = None
    event_type: str | None = None
    deadline_date: str | None = None


class ResultsRequest(BaseModel):
    """Requête de résultats personnalisés.

    Champs:
    - answers: réponses au questionnaire
    - geo: localisation choisie manuellement (sélecteur de lieu); résolue par IP si absente
    """

    answers: UserAnswers
    geo: GeoData | None = None


class ResultItem(BaseModel):
    """Ressource classée, avec lien tracé et durée lisible."""

    resource: PublicResource
    score: float
    match_reasons: list[str]
    tracked_url: str
    time_label: str


class LocalCardResponse(BaseModel):
    anchor: ResultItem
    extras: list[ResultItem]
    score: float


class ResultsResponse(BaseModel):
    """Réponse du parcours: variante, localisation, liste classée et carte locale."""

    variant: Variant
    geo: dict
    resources: list[ResultItem]
    local_card: LocalCardResponse | None = None


class ClickRequest(BaseModel):
    """Clic sortant sur une ressource."""

    resource_id: str
    variant: Variant
    answers: UserAnswers | None = None
    geo_country: str | None = None


class LoginPayload(BaseModel):
    """Payload de connexion admin."""

    password: str


class TogglePayload(BaseModel):
    enabled: bool


class SubmissionAccepted(BaseModel):
    id: str
    status: str = "pending"


class CategoryCount(BaseModel):
    category: str
    total: int = 0
    pending: int = 0
    enabled: int = 0


class AdminOverview(BaseModel):
    """Synthèse du tableau de bord admin."""

    categories: list[CategoryCount] = Field(default_factory=list)
    pending_candidates: int = 0
