"""Dépendances partagées pour les routes de l'API.

`visitor_ip` extrait l'adresse publique du visiteur (premier élément de `X-Forwarded-For` derrière
un proxy, sinon l'adresse de la connexion), transmise au résolveur géographique. Une adresse
absente, invalide ou non routable (loopback, réseau privé) donne None.
"""

import ipaddress

from fastapi import Request

FORWARDED_FOR_HEADER = "X-Forwarded-For"


def _public_ip(raw: str | None) -> str | None:
    if not raw:
        return None
    try:
        address = ipaddress.ip_address(raw.strip())
    except ValueError:
        return None
    return str(address) if address.is_global else None


def visitor_ip(request: Request) -> str | None:
    forwarded = request.headers.get(FORWARDED_FOR_HEADER)
    if forwarded:
        return _public_ip(forwarded.split(",")[0])
    return _public_ip(request.client.host if request.client else None)
