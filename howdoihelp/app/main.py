"""
Application principale FastAPI.

Ce module assemble les composants du service: middlewares, routes publiques, administration,
métriques et route attrape-tout des referrals.

Responsabilités du module:
- Initialiser le logging structuré
- Construire l'application FastAPI avec son titre/debug
- Ajouter les middlewares (contexte de requête, métriques, garde admin)
- Monter les routers, la route de referral en dernier
"""

from __future__ import annotations

from fastapi import FastAPI

from howdoihelp.api.routes_admin import router as admin_router
from howdoihelp.api.routes_geo import router as geo_router
from howdoihelp.api.routes_health import router as health_router
from howdoihelp.api.routes_referral import router as referral_router
from howdoihelp.api.routes_resources import router as resources_router
from howdoihelp.api.routes_results import router as results_router
from howdoihelp.api.routes_submit import router as submit_router
from howdoihelp.app.metrics import PrometheusMiddleware, metrics_router
from howdoihelp.core.container import container
from howdoihelp.core.logging import setup_logging
from howdoihelp.middlewares.admin_gate import AdminGateMiddleware
from howdoihelp.middlewares.request_context import RequestContextMiddleware


def create_app() -> FastAPI:
    """
    Construit et retourne l'application FastAPI prête à l'usage.

    Étapes:
    - Configure le logging structuré (structlog)
    - Lit les paramètres d'exécution
    - Ajoute les middlewares (le dernier ajouté est le plus externe)
    - Publie les routes; `/{slug}` est montée après toutes les routes statiques
    """
    settings = container.settings
    setup_logging(debug=settings.APP_DEBUG)
    app = FastAPI(title=settings.APP_NAME, debug=settings.APP_DEBUG)
    app.add_middleware(AdminGateMiddleware)
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(RequestContextMiddleware)
    app.include_router(health_router)
    app.include_router(geo_router)
    app.include_router(resources_router)
    app.include_router(results_router)
    app.include_router(submit_router)
    app.include_router(admin_router)
    app.include_router(metrics_router)
    app.include_router(referral_router)
    return app


app = create_app()
