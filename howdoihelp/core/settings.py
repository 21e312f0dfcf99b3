"""Définition et chargement des paramètres de configuration applicative.

Objectif du module
------------------
- Centraliser les paramètres (env/.env) via Pydantic Settings
- Résoudre le fichier `.env` à utiliser selon la stratégie: ENV_FILE > .env.{APP_ENV} > .env
"""

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


def _resolve_env_file() -> Path | str:
    """Retourne le fichier .env à charger (ENV_FILE > .env.{APP_ENV} > .env)."""
    from_env = os.getenv("ENV_FILE")
    if from_env:
        return from_env
    cwd = Path.cwd()
    specific = cwd / f".env.{os.getenv('APP_ENV', 'dev')}"
    if specific.exists():
        return specific
    return cwd / ".env"


class Settings(BaseSettings):
    """Modèle de configuration chargé depuis l'environnement et .env."""

    model_config = SettingsConfigDict(
        env_file=_resolve_env_file(),
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
    )
    APP_NAME: str = "howdoihelp"
    APP_ENV: str = "dev"
    APP_DEBUG: bool = True
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8000

    DATABASE_URL: str | None = None
    # Admin: comparaison statique du mot de passe puis cookie de session
    ADMIN_PASSWORD: str = "dev-admin-change-me"
    ADMIN_COOKIE_MAX_AGE_S: int = 60 * 60 * 24 * 7

    # Géolocalisation IP (fournisseur principal HTTPS, secondaire HTTP).
    # `{ip}` reçoit l'adresse du visiteur; sans adresse il est retiré (recherche sur l'appelant).
    GEO_PRIMARY_URL: str = "https://ipapi.co/{ip}/json/"
    GEO_SECONDARY_URL: str = (
        "http://ip-api.com/json/{ip}?fields=country,countryCode,city,regionName,timezone"
    )
    GEO_TIMEOUT_S: float = 3.0

    # Soumissions publiques
    SUBMISSION_RATE_LIMIT_PER_HOUR: int = 20

    @property
    def is_production(self) -> bool:
        """Indique si l'application tourne en production (cookies `secure`)."""
        return self.APP_ENV.lower() in {"prod", "production"}


def get_settings() -> Settings:
    """Construit et retourne la configuration de l'application."""
    return Settings()
