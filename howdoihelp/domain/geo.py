"""
Modèle de géolocalisation et politique « pays autoritaires ».

Ce module définit la valeur `GeoData` renvoyée par le résolveur et la liste fixe des codes pays
pour lesquels le contenu de plaidoyer est masqué. La liste est une donnée: aucun test
d'appartenance n'est écrit en dur ailleurs que dans `is_authoritarian`.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

UNKNOWN_COUNTRY = "Unknown"
UNKNOWN_COUNTRY_CODE = "XX"

AUTHORITARIAN_COUNTRIES: frozenset[str] = frozenset(
    {
        "CN", "RU", "IR", "KP", "SA", "SY", "BY", "CU", "VE",
        "MM", "TM", "TJ", "EG", "AE", "QA", "BH", "OM",
    }
)  # fmt: skip


def is_authoritarian(country_code: str | None) -> bool:
    """Retourne True si le code ISO alpha-2 appartient à la liste fixe."""
    return bool(country_code) and country_code in AUTHORITARIAN_COUNTRIES


class GeoData(BaseModel):
    """Localisation approximative d'un visiteur.

    `is_authoritarian` est calculé à partir de `country_code` uniquement: il ne peut ni être
    fourni à la construction ni diverger du code.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    country: str = UNKNOWN_COUNTRY
    country_code: str = Field(default=UNKNOWN_COUNTRY_CODE, alias="countryCode")
    city: str | None = None
    region: str | None = None
    timezone: str | None = None

    @field_validator("country", mode="before")
    @classmethod
    def _country_or_unknown(cls, value):
        if value is None or isinstance(value, str):
            return (value or "").strip() or UNKNOWN_COUNTRY
        return value

    @field_validator("country_code", mode="before")
    @classmethod
    def _normalize_code(cls, value):
        """Code ISO en majuscules; vide ou absent → `XX`."""
        if value is None or isinstance(value, str):
            return (value or "").strip().upper() or UNKNOWN_COUNTRY_CODE
        return value

    @computed_field(alias="isAuthoritarian")  # type: ignore[prop-decorator]
    @property
    def is_authoritarian(self) -> bool:
        """Appartenance de `country_code` à `AUTHORITARIAN_COUNTRIES`."""
        return is_authoritarian(self.country_code)

    @property
    def is_resolved(self) -> bool:
        """Indique si un pays a effectivement été déterminé."""
        return self.country_code != UNKNOWN_COUNTRY_CODE

    def to_public(self) -> dict:
        """Sérialise pour l'API (camelCase, champs optionnels absents omis)."""
        return self.model_dump(by_alias=True, exclude_none=True)


def unknown_geo(timezone: str | None = None) -> GeoData:
    """Construit la valeur de repli (pays inconnu, fuseau local éventuel)."""
    return GeoData(
        country=UNKNOWN_COUNTRY,
        country_code=UNKNOWN_COUNTRY_CODE,
        timezone=timezone or None,
    )
