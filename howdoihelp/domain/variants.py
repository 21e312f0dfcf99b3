"""
Affectation des variantes d'expérience (A/B/D).

La variante est conservée dans un cookie afin qu'un visiteur reste dans le même groupe d'une
session à l'autre.
"""

import random

VARIANT_COOKIE = "hdih_variant"
VARIANTS: tuple[str, ...] = ("A", "B", "D")
VARIANT_COOKIE_MAX_AGE_S = 90 * 24 * 60 * 60


def parse_variant(raw: str | None) -> str | None:
    """Retourne la variante si la valeur du cookie est reconnue, sinon None."""
    if raw and raw in VARIANTS:
        return raw
    return None


def get_or_assign_variant(raw: str | None, rng: random.Random | None = None) -> tuple[str, bool]:
    """Retourne (variante, nouvellement_assignée).

    Une valeur de cookie invalide ou absente donne lieu à un tirage uniforme.
    """
    existing = parse_variant(raw)
    if existing:
        return existing, False
    return (rng or random).choice(VARIANTS), True
