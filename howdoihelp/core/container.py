"""
Conteneur d'injection de dépendances et configuration application.

Instancie les composants centraux (settings, moteur SQL, catalogue, résolveur géographique) et
expose un singleton `container` utilisé par le reste de l'application.
"""

from howdoihelp.core.settings import Settings, get_settings
from howdoihelp.infra.repo.db import get_engine, init_schema
from howdoihelp.services.catalog import CatalogService
from howdoihelp.services.geo_resolver import GeoResolver


class Container:
    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.engine = get_engine(self.settings.DATABASE_URL)
        if self.engine.dialect.name == "sqlite":
            # Base locale/éphémère: pas de migration Alembic, on crée le schéma
            init_schema(self.engine)
            self.storage_backend = "sqlite"
        else:
            self.storage_backend = self.engine.dialect.name
        self.catalog = CatalogService(
            self.engine,
            rate_limit_per_hour=self.settings.SUBMISSION_RATE_LIMIT_PER_HOUR,
        )
        self.geo_resolver = GeoResolver.from_settings(self.settings)


container = Container()
