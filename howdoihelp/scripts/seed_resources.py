"""
Script de chargement du catalogue de ressources.

Lit un fichier JSON (tableau de ressources) et les écrit en base par upsert sur l'id. La base cible
est `DATABASE_URL`: sans elle, le script s'arrête (une base en mémoire disparaîtrait à la sortie).

Usage: howdoihelp-seed --path howdoihelp/data/resources.json
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from howdoihelp.core.settings import get_settings
from howdoihelp.domain.resources import Resource
from howdoihelp.infra.repo.db import get_engine, init_schema, session_scope
from howdoihelp.infra.repo.resource_repo import ResourceRepo

DEFAULT_PATH = Path(__file__).resolve().parents[1] / "data" / "resources.json"


def load_resources(path: str | Path) -> list[Resource]:
    """
    Charge et valide les ressources depuis `path`.

    Lève FileNotFoundError si le fichier manque, ValueError si le contenu n'est pas un tableau
    JSON de ressources valides.
    """
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, list):
        raise ValueError("expected a JSON array of resources")
    return [Resource.model_validate(item) for item in raw]


def seed(database_url: str, resources: list[Resource]) -> int:
    """Upsert des ressources; retourne le nombre de lignes écrites."""
    engine = get_engine(database_url)
    if engine.dialect.name == "sqlite":
        init_schema(engine)
    with session_scope(engine) as s:
        return ResourceRepo(s).upsert_many(resources)


def main(argv: list[str] | None = None) -> int:
    """Point d'entrée: lit le JSON et le charge en base. Retourne le code de sortie."""
    parser = argparse.ArgumentParser(description="Chargement des ressources JSON en base")
    parser.add_argument(
        "--path",
        type=str,
        default=str(DEFAULT_PATH),
        help="Chemin du fichier JSON de ressources",
    )
    args = parser.parse_args(argv)

    database_url = get_settings().DATABASE_URL
    if not database_url:
        print("[seed] DATABASE_URL manquant", file=sys.stderr)
        return 1

    try:
        resources = load_resources(args.path)
    except (OSError, ValueError, ValidationError) as err:
        print(f"[seed] lecture impossible de {args.path}: {err}", file=sys.stderr)
        return 1

    print(f"[seed] chargement de {len(resources)} ressources…")
    try:
        n = seed(database_url, resources)
    except SQLAlchemyError as err:
        print(f"[seed] échec: {err}", file=sys.stderr)
        return 1
    print(f"[seed] {n} ressources écrites")
    return 0


if __name__ == "__main__":
    sys.exit(main())
