"""Clients HTTP externes (géolocalisation IP).

Objectif du module
------------------
- Encapsuler les appels réseau vers les fournisseurs de géolocalisation IP.
- Borner chaque appel par une échéance (annulation via `asyncio.wait_for`).
- Convertir toute défaillance en une `GeoProviderError` typée.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any

import httpx
from pydantic import ValidationError

from howdoihelp.core.http_constants import HTTP_MULTIPLE_CHOICES, HTTP_OK
from howdoihelp.domain.geo import UNKNOWN_COUNTRY, UNKNOWN_COUNTRY_CODE, GeoData

# Valeur renvoyée par ipapi.co quand l'IP n'est pas localisable
UNDEFINED_SENTINEL = "Undefined"


class GeoProviderError(RuntimeError):
    """Erreur de base d'un fournisseur de géolocalisation."""

    def __init__(self, provider: str, message: str) -> None:
        """Initialise l'erreur avec le nom du fournisseur."""
        self.provider = provider
        super().__init__(f"{provider}: {message}")


class NetworkFailure(GeoProviderError):
    """Échec réseau ou statut HTTP hors 2xx."""


class ProviderTimeout(GeoProviderError):
    """Échéance dépassée: l'appel a été annulé."""


class MalformedResponse(GeoProviderError):
    """Corps de réponse illisible ou de forme inattendue."""


class UnresolvedLocation(GeoProviderError):
    """Réponse valide mais pays non résolu (code sentinelle)."""


def _text(value: Any) -> str | None:
    """Normalise un champ optionnel: chaîne vide ou absente → None."""
    return value or None


class GeoProvider(ABC):
    """Fournisseur de géolocalisation interrogé en GET, pour une adresse IP donnée ou l'appelant."""

    name: str = "provider"

    def __init__(self, url: str, timeout_s: float = 3.0) -> None:
        """Configure le gabarit d'URL et l'échéance de l'appel.

        Le gabarit peut contenir `{ip}`: remplacé par l'adresse du visiteur, ou retiré (avec le
        `/` qui suit) pour une recherche sur l'adresse de l'appelant.
        """
        self.url = url
        self.timeout_s = timeout_s

    def url_for(self, ip: str | None = None) -> str:
        if ip:
            return self.url.replace("{ip}", ip)
        return self.url.replace("{ip}/", "").replace("{ip}", "")

    async def _get_json(
        self, client: httpx.AsyncClient, ip: str | None = None
    ) -> dict[str, Any]:
        """Effectue le GET borné et retourne le corps JSON (objet)."""
        try:
            resp = await asyncio.wait_for(client.get(self.url_for(ip)), timeout=self.timeout_s)
        except (TimeoutError, httpx.TimeoutException) as exc:
            raise ProviderTimeout(self.name, f"no answer within {self.timeout_s}s") from exc
        except httpx.HTTPError as exc:
            raise NetworkFailure(self.name, str(exc) or exc.__class__.__name__) from exc

        if not HTTP_OK <= resp.status_code < HTTP_MULTIPLE_CHOICES:
            raise NetworkFailure(self.name, f"http status {resp.status_code}")
        try:
            data = resp.json()
        except ValueError as exc:
            raise MalformedResponse(self.name, "invalid json body") from exc
        if not isinstance(data, dict):
            raise MalformedResponse(self.name, "json body is not an object")
        return data

    async def lookup(self, client: httpx.AsyncClient, ip: str | None = None) -> GeoData:
        """Interroge le fournisseur et construit la `GeoData` correspondante."""
        data = await self._get_json(client, ip)
        try:
            return self.parse(data)
        except ValidationError as exc:
            raise MalformedResponse(self.name, "unexpected field types") from exc

    @abstractmethod
    def parse(self, data: dict[str, Any]) -> GeoData:
        """Convertit le corps JSON du fournisseur en `GeoData`."""
        raise NotImplementedError


class IpapiCoProvider(GeoProvider):
    """Fournisseur principal (ipapi.co, HTTPS, sans clé).

    Rejette la sentinelle `"Undefined"` et l'absence de `country_code`.
    """

    name = "ipapi.co"

    def parse(self, data: dict[str, Any]) -> GeoData:
        code = data.get("country_code")
        if not code or code == UNDEFINED_SENTINEL:
            raise UnresolvedLocation(self.name, f"country_code={code!r}")
        return GeoData(
            country=data.get("country_name") or UNKNOWN_COUNTRY,
            country_code=code,
            city=_text(data.get("city")),
            region=_text(data.get("region")),
            timezone=_text(data.get("timezone")),
        )


class IpApiComProvider(GeoProvider):
    """Fournisseur secondaire (ip-api.com, HTTP seulement).

    Accepte toute réponse 2xx telle quelle, avec des valeurs par défaut par champ; aucune
    sentinelle n'est revérifiée ici.
    """

    name = "ip-api.com"

    def parse(self, data: dict[str, Any]) -> GeoData:
        return GeoData(
            country=data.get("country") or UNKNOWN_COUNTRY,
            country_code=data.get("countryCode") or UNKNOWN_COUNTRY_CODE,
            city=_text(data.get("city")),
            region=_text(data.get("regionName")),
            timezone=_text(data.get("timezone")),
        )
