"""Utilitaires de présentation: liens sortants tracés et durées lisibles."""

import math
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

UTM_SOURCE = "howdoihelp"


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def track_url(url: str, variant: str, resource_id: str) -> str:
    """Ajoute les paramètres UTM à une URL sortante; une URL invalide est renvoyée telle quelle."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return url
    if not parts.scheme or not parts.netloc:
        return url
    query = dict(parse_qsl(parts.query, keep_blank_values=True))
    query.update(
        {"utm_source": UTM_SOURCE, "utm_campaign": variant, "utm_content": resource_id}
    )
    return urlunsplit(parts._replace(query=urlencode(query)))


def format_time(minutes: int) -> str:
    """Formate une durée en minutes en estimation lisible ("~1 hour", "3 days"...)."""
    if minutes < 5:
        return "< 5 min"
    if minutes < 60:
        return f"{minutes} min"
    if minutes < 120:
        return "~1 hour"
    if minutes < 480:
        return f"{_round_half_up(minutes / 60)} hours"
    if minutes < 1440:
        return "~1 day"
    return f"{_round_half_up(minutes / 480)} days"
