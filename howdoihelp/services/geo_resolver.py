"""Service de résolution de la localisation d'un visiteur.

Ce module enchaîne les fournisseurs de géolocalisation IP (principal puis secondaire), chacun
borné par son échéance, puis se replie sur le fuseau horaire local. `GeoResolver.resolve` est
totale: elle retourne toujours une `GeoData` et ne lève jamais d'erreur vers l'appelant.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

import httpx
import structlog
import tzlocal

from howdoihelp.app.metrics import GEO_RESOLUTIONS
from howdoihelp.core.settings import Settings
from howdoihelp.domain.geo import GeoData, unknown_geo
from howdoihelp.infra.http_clients import GeoProvider, IpApiComProvider, IpapiCoProvider

SOURCE_FALLBACK = "fallback"

log = structlog.get_logger(__name__)


def local_timezone() -> str | None:
    """Retourne l'identifiant IANA du fuseau local, ou None s'il est indéterminable."""
    try:
        return tzlocal.get_localzone_name() or None
    except Exception:
        return None


class GeoResolver:
    """Résout une `GeoData` best-effort via une chaîne ordonnée de fournisseurs.

    Chaque appel à `resolve` refait la résolution complète (aucun cache) et émet au plus un
    appel réseau par fournisseur, séquentiellement.
    """

    def __init__(
        self,
        providers: Sequence[GeoProvider],
        transport: httpx.AsyncBaseTransport | None = None,
        timezone_lookup: Callable[[], str | None] = local_timezone,
    ) -> None:
        """Configure la chaîne de fournisseurs.

        Args:
            providers: Fournisseurs interrogés dans l'ordre, le premier succès l'emporte.
            transport: Transport httpx optionnel (tests, proxy).
            timezone_lookup: Lecture du fuseau local pour le repli terminal.
        """
        self._providers = list(providers)
        self._transport = transport
        self._timezone_lookup = timezone_lookup

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None
    ) -> GeoResolver:
        """Construit le résolveur standard (ipapi.co puis ip-api.com)."""
        timeout_s = settings.GEO_TIMEOUT_S
        return cls(
            providers=[
                IpapiCoProvider(settings.GEO_PRIMARY_URL, timeout_s=timeout_s),
                IpApiComProvider(settings.GEO_SECONDARY_URL, timeout_s=timeout_s),
            ],
            transport=transport,
        )

    async def resolve(self, ip: str | None = None) -> GeoData:
        """Retourne la localisation de `ip` (ou de l'appelant si absente), sans jamais échouer."""
        geo, _source = await self.resolve_with_source(ip)
        return geo

    async def resolve_with_source(self, ip: str | None = None) -> tuple[GeoData, str]:
        """Comme `resolve`, en indiquant aussi l'étape qui a produit le résultat."""
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                for provider in self._providers:
                    try:
                        return await provider.lookup(client, ip), provider.name
                    except Exception:
                        continue
        except Exception:
            pass
        return self._fallback(), SOURCE_FALLBACK

    def _fallback(self) -> GeoData:
        try:
            tz = self._timezone_lookup()
        except Exception:
            tz = None
        return unknown_geo(timezone=tz)


async def resolve_visitor_geo(resolver: GeoResolver, ip: str | None = None) -> GeoData:
    """Résout la localisation du visiteur et enregistre l'étape utilisée (logs + métriques)."""
    geo, source = await resolver.resolve_with_source(ip)
    GEO_RESOLUTIONS.labels(outcome=source).inc()
    log.debug(
        "geo_resolved",
        source=source,
        ip_known=ip is not None,
        resolved=geo.is_resolved,
        country_code=geo.country_code,
        is_authoritarian=geo.is_authoritarian,
    )
    return geo
