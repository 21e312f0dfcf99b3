"""
Classement des ressources pour un visiteur.

Ce module note chaque ressource selon le temps disponible, l'intention, la localisation, le profil
et l'activité, puis sélectionne une liste diversifiée et une carte locale (événements et
communautés proches). La politique géographique s'applique ici: les lettres de plaidoyer sont
masquées pour les visiteurs situés dans un pays de `AUTHORITARIAN_COUNTRIES`.
"""

from __future__ import annotations

import math
import re
from datetime import UTC, datetime

from howdoihelp.domain.geo import UNKNOWN_COUNTRY_CODE, GeoData
from howdoihelp.domain.resources import (
    LOCAL_CATEGORIES,
    LocalCard,
    Resource,
    ScoredResource,
    UserAnswers,
)

TIME_BUDGETS: dict[str, float] = {
    "minutes": 15,
    "hours": 240,
    "significant": math.inf,
}

FRICTION_SENSITIVITY: dict[str, float] = {
    "minutes": 0.8,
    "hours": 0.4,
    "significant": 0.1,
}

INTENT_TO_CATEGORIES: dict[str, tuple[str, ...]] = {
    "understand": ("programs", "other"),
    "connect": ("communities", "events"),
    "impact": ("letters", "other"),
    "do_part": ("letters", "other", "events"),
}

SIM_WEIGHTS = {
    "category": 0.35,
    "source_org": 0.25,
    "time_bucket": 0.20,
    "location": 0.20,
}

# Alias de métropoles dont les libellés de lieu varient beaucoup
CITY_ALIASES: dict[str, tuple[str, ...]] = {
    "san francisco": (
        "sf", "bay area", "silicon valley", "oakland", "berkeley",
        "palo alto", "san jose", "mountain view", "sunnyvale",
    ),
    "new york": ("nyc", "manhattan", "brooklyn", "queens"),
    "london": ("uk", "united kingdom"),
    "los angeles": ("la", "santa monica", "pasadena"),
    "washington": ("dc", "d.c.", "arlington"),
}  # fmt: skip

ADVOCACY_CATEGORIES = frozenset({"letters"})

MIN_SCORE_THRESHOLD = 0.15
SIMILARITY_PENALTY = 0.6
MIN_FRICTION_FACTOR = 0.05
DEAD_ACTIVITY_THRESHOLD = 0.2


def location_fit(resource: Resource, geo: GeoData) -> float:
    """Adéquation géographique d'une ressource (0 = masquée, >1 = proche)."""
    if geo.is_authoritarian and resource.category in ADVOCACY_CATEGORIES:
        return 0.0

    loc = resource.location.lower()
    if loc in ("global", "online", ""):
        return 1.0

    if geo.city:
        city = geo.city.lower()
        if city in loc:
            return 1.4
        if any(alias in loc for alias in CITY_ALIASES.get(city, ())):
            return 1.4

    if geo.region and geo.region.lower() in loc:
        return 1.3

    # Nom complet plutôt que code: "us" apparaît dans "Houston"
    country = geo.country.lower()
    if country != "unknown" and country in loc:
        return 1.2

    code = geo.country_code.lower()
    if code != UNKNOWN_COUNTRY_CODE.lower() and len(code) == 2:
        if re.search(rf"\b{re.escape(code)}\b", loc):
            return 1.2

    return 0.3


def time_fit(resource: Resource, time: str) -> float:
    budget = TIME_BUDGETS[time]
    if resource.min_minutes <= budget:
        return 1.0
    if resource.min_minutes <= budget * 2:
        return 0.5
    return 0.1


def type_fit(resource: Resource, variant: str, answers: UserAnswers) -> float:
    if variant == "B" and answers.intents:
        cats = {c for i in answers.intents for c in INTENT_TO_CATEGORIES[i]}
        return 1.3 if resource.category in cats else 1.0
    if variant == "D" and answers.intent:
        return 1.3 if resource.category in INTENT_TO_CATEGORIES[answers.intent] else 0.7
    return 1.0


def deadline_boost(resource: Resource, now: datetime | None = None) -> float:
    """Bonus pour les échéances proches; 0 si l'échéance est passée."""
    if not resource.deadline_date:
        return 1.0
    try:
        deadline = datetime.fromisoformat(resource.deadline_date)
    except ValueError:
        return 1.0
    if deadline.tzinfo is None:
        deadline = deadline.replace(tzinfo=UTC)
    now = now or datetime.now(UTC)
    days_until = math.ceil((deadline - now).total_seconds() / 86400)
    if days_until < 0:
        return 0.0
    if days_until <= 14:
        return 1.5
    if days_until <= 30:
        return 1.2
    return 1.0


def position_fit(resource: Resource, position_type: str | None) -> float:
    if not position_type:
        return 1.0
    if position_type in resource.position_tags:
        return 1.5
    if position_type in resource.background_tags:
        return 1.3
    return 0.8


def activity_fit(resource: Resource) -> float:
    """Échelle 0.2→0.4 … 1.0→1.0; en dessous de 0.2 la ressource est considérée morte."""
    score = resource.activity_score
    if score is None:
        return 1.0
    if score < DEAD_ACTIVITY_THRESHOLD:
        return 0.0
    return 0.2 + score * 0.8


def score_resource(
    resource: Resource,
    answers: UserAnswers,
    geo: GeoData,
    variant: str,
    now: datetime | None = None,
) -> ScoredResource:
    """Note une ressource pour un visiteur et collecte les raisons de correspondance."""
    if not resource.enabled:
        return ScoredResource(resource=resource, score=0.0)

    af = activity_fit(resource)
    if af == 0:
        return ScoredResource(resource=resource, score=0.0)

    tf = time_fit(resource, answers.time)
    tyf = type_fit(resource, variant, answers)
    lf = location_fit(resource, geo)
    pf = position_fit(resource, answers.position_type)
    dl = deadline_boost(resource, now)

    if answers.positioned and resource.ev_positioned is not None:
        ev = resource.ev_positioned
    else:
        ev = resource.ev_general
    friction = max(1 - resource.friction * FRICTION_SENSITIVITY[answers.time], MIN_FRICTION_FACTOR)

    reasons: list[str] = []
    if lf > 1.0:
        reasons.append("Near you")
    if dl > 1.0:
        reasons.append("Deadline approaching")
    if pf > 1.0:
        reasons.append("Relevant to your background")

    score = tf * tyf * lf * pf * af * ev * friction * dl
    return ScoredResource(resource=resource, score=score, match_reasons=reasons)


def _time_bucket(minutes: int) -> str:
    if minutes <= 5:
        return "instant"
    if minutes <= 30:
        return "quick"
    if minutes <= 120:
        return "session"
    return "deep"


def similarity(a: Resource, b: Resource) -> float:
    sim = 0.0
    if a.category == b.category:
        sim += SIM_WEIGHTS["category"]
    if a.source_org == b.source_org:
        sim += SIM_WEIGHTS["source_org"]
    if _time_bucket(a.min_minutes) == _time_bucket(b.min_minutes):
        sim += SIM_WEIGHTS["time_bucket"]
    if a.location == b.location:
        sim += SIM_WEIGHTS["location"]
    return sim


def _is_nearby_local(resource: Resource, geo: GeoData) -> bool:
    return (
        resource.category in LOCAL_CATEGORIES
        and resource.enabled
        and location_fit(resource, geo) > 1.0
    )


def remoteness_bonus(resources: list[Resource], geo: GeoData) -> float:
    """Moins il y a de ressources locales proches, plus la carte locale compte."""
    nearby = sum(1 for r in resources if _is_nearby_local(r, geo))
    if nearby == 0:
        return 1.4
    if nearby <= 2:
        return 1.2
    return 1.0


def rank_resources(
    resources: list[Resource],
    answers: UserAnswers,
    geo: GeoData,
    variant: str,
    max_results: int = 6,
    min_results: int = 3,
    now: datetime | None = None,
) -> list[ScoredResource]:
    """Classe les ressources non locales (lettres, programmes, autres).

    Sélection gloutonne: à chaque pas on retient la meilleure ressource puis on pénalise celles
    qui lui ressemblent, afin de diversifier la liste.
    """
    remaining = [
        s
        for s in (
            score_resource(r, answers, geo, variant, now)
            for r in resources
            if r.category not in LOCAL_CATEGORIES
        )
        if s.score > MIN_SCORE_THRESHOLD
    ]
    remaining.sort(key=lambda s: s.score, reverse=True)

    selected: list[ScoredResource] = []
    while len(selected) < max_results and remaining:
        best = remaining.pop(0)
        if len(selected) >= min_results and best.score < MIN_SCORE_THRESHOLD:
            break
        selected.append(best)
        for item in remaining:
            sim = similarity(best.resource, item.resource)
            if sim > 0:
                item.score *= 1 - sim * SIMILARITY_PENALTY
        remaining.sort(key=lambda s: s.score, reverse=True)
    return selected


def build_local_card(
    resources: list[Resource],
    answers: UserAnswers,
    geo: GeoData,
    variant: str,
    max_extras: int = 6,
    now: datetime | None = None,
) -> LocalCard | None:
    """Construit la carte locale (événements d'abord), ou None si rien de proche."""
    scored = [
        s
        for s in (
            score_resource(r, answers, geo, variant, now)
            for r in resources
            if _is_nearby_local(r, geo)
        )
        if s.score > MIN_SCORE_THRESHOLD
    ]
    if not scored:
        return None

    scored.sort(key=lambda s: (s.resource.category == "events", s.score), reverse=True)
    anchor = scored[0]
    return LocalCard(
        anchor=anchor,
        extras=scored[1 : 1 + max_extras],
        score=anchor.score * remoteness_bonus(resources, geo),
    )
