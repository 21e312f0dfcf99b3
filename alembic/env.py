"""
Configuration de l'environnement Alembic pour les migrations de base de données.

Cible les modèles du catalogue (ressources, candidats, clics). L'URL vient de `DATABASE_URL`
(via les settings de l'application), avec une base SQLite locale par défaut.
"""

from __future__ import annotations

from logging.config import fileConfig

from sqlalchemy import create_engine, pool

from alembic import context  # type: ignore[attr-defined]
from howdoihelp.core.settings import get_settings
from howdoihelp.infra.repo.models import Base

DEFAULT_URL = "sqlite:///./howdoihelp.db"

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _database_url() -> str:
    return get_settings().DATABASE_URL or DEFAULT_URL


def run_migrations_offline() -> None:
    """Génère le SQL des migrations sans connexion (bindings littéraux)."""
    context.configure(url=_database_url(), target_metadata=target_metadata, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Applique les migrations sur une connexion SQLAlchemy active."""
    connectable = create_engine(_database_url(), poolclass=pool.NullPool)
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
