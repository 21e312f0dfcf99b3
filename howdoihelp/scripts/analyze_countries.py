"""
Rapport des pays (ou suffixes) présents dans les localisations du catalogue.

Chaque `location` non nulle est réduite à son dernier segment après virgule
("Austin, TX, USA" → "USA"), puis les occurrences sont comptées et affichées par ordre
décroissant.
"""

from __future__ import annotations

import argparse
import sys
from collections import Counter
from collections.abc import Iterable

from sqlalchemy.exc import SQLAlchemyError

from howdoihelp.core.settings import get_settings
from howdoihelp.infra.repo.db import get_engine, session_scope
from howdoihelp.infra.repo.resource_repo import ResourceRepo


def location_suffix(location: str) -> str:
    return location.split(",")[-1].strip()


def count_countries(locations: Iterable[str | None]) -> list[tuple[str, int]]:
    """Compte les suffixes; tri par effectif décroissant (ordre d'apparition à égalité)."""
    counts = Counter(location_suffix(loc) for loc in locations if loc)
    return sorted(counts.items(), key=lambda item: item[1], reverse=True)


def main(argv: list[str] | None = None) -> int:
    """Point d'entrée: lit les localisations en base et imprime le décompte."""
    parser = argparse.ArgumentParser(description="Décompte des pays dans les localisations")
    parser.parse_args(argv)

    database_url = get_settings().DATABASE_URL
    if not database_url:
        print("[analyze] DATABASE_URL manquant", file=sys.stderr)
        return 1
    try:
        with session_scope(get_engine(database_url)) as s:
            locations = ResourceRepo(s).locations()
    except SQLAlchemyError as err:
        print(f"[analyze] lecture impossible: {err}", file=sys.stderr)
        return 1

    print("Unique Countries/Suffixes in Locations:")
    for country, count in count_countries(locations):
        print(f"{country}: {count}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
