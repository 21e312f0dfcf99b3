"""
Métriques Prometheus pour l'application.

Ce module définit les métriques Prometheus du service (requêtes HTTP, résolutions géographiques,
soumissions, referrals) et expose l'endpoint `/metrics`.
"""

import time

from fastapi import APIRouter, Request
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

metrics_router = APIRouter()

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "route", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "Latency of HTTP requests", ["route"]
)

GEO_RESOLUTIONS = Counter(
    "geo_resolutions_total",
    "Visitor geolocation resolutions by the step that produced the result",
    ["outcome"],
)
SUBMISSIONS_TOTAL = Counter(
    "submissions_total",
    "Public resource submissions accepted",
    ["kind"],
)
REFERRALS_TOTAL = Counter(
    "referrals_total",
    "Visits through a referral slug",
)

# Préfixes connus: tout le reste (slugs de referral) est regroupé pour borner la cardinalité
KNOWN_ROUTES = ("/admin", "/resources", "/results", "/clicks", "/submit", "/geo", "/health", "/metrics")


def normalize_route(path: str) -> str:
    """Réduit un chemin à un label de faible cardinalité."""
    if path == "/":
        return "/"
    for prefix in KNOWN_ROUTES:
        if path == prefix or path.startswith(prefix + "/"):
            return prefix
    return "/{slug}"


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Compte les requêtes et mesure leur latence par route normalisée."""

    async def dispatch(self, request: Request, call_next):
        route = normalize_route(request.url.path)
        start = time.perf_counter()
        response = await call_next(request)
        REQUEST_LATENCY.labels(route=route).observe(time.perf_counter() - start)
        REQUEST_COUNT.labels(
            method=request.method, route=route, status=str(response.status_code)
        ).inc()
        return response


@metrics_router.get("/metrics")
def metrics():
    """Expose les métriques au format texte Prometheus."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
