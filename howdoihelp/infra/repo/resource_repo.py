# ============================================================
# Module : howdoihelp/infra/repo/resource_repo.py
# Objet  : Accès SQL (CRUD) pour ressources, candidats et clics.
# ============================================================

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session

from howdoihelp.domain.resources import EventCandidate, Resource
from howdoihelp.infra.repo.models import EventCandidateORM, ResourceClickORM, ResourceORM

_RESOURCE_FIELDS = tuple(Resource.model_fields)
_CANDIDATE_FIELDS = tuple(EventCandidate.model_fields)


def _to_resource(row: ResourceORM) -> Resource:
    return Resource.model_validate(row, from_attributes=True)


def _to_candidate(row: EventCandidateORM) -> EventCandidate:
    return EventCandidate.model_validate(row, from_attributes=True)


def _resource_values(resource: Resource) -> dict:
    values = resource.model_dump(include=set(_RESOURCE_FIELDS))
    if values.get("created_at") is None:
        values.pop("created_at")
    return values


class ResourceRepo:
    """CRUD pour la table `resources`."""

    def __init__(self, session: Session) -> None:
        """Construit le repo avec une session (SQLAlchemy)."""
        self._session = session

    def get(self, resource_id: str) -> Resource | None:
        row = self._session.get(ResourceORM, resource_id)
        return _to_resource(row) if row else None

    def list_public(self, category: str | None = None) -> list[Resource]:
        """Ressources approuvées et actives, par `ev_general` décroissant."""
        stmt = select(ResourceORM).where(
            ResourceORM.status == "approved", ResourceORM.enabled.is_(True)
        )
        if category is not None:
            stmt = stmt.where(ResourceORM.category == category)
        stmt = stmt.order_by(ResourceORM.ev_general.desc())
        return [_to_resource(r) for r in self._session.execute(stmt).scalars()]

    def list_all(self, category: str | None = None) -> list[Resource]:
        """Toutes les ressources (admin), par catégorie puis `ev_general` décroissant."""
        stmt = select(ResourceORM)
        if category is not None:
            stmt = stmt.where(ResourceORM.category == category)
        stmt = stmt.order_by(ResourceORM.category.asc(), ResourceORM.ev_general.desc())
        return [_to_resource(r) for r in self._session.execute(stmt).scalars()]

    def add(self, resource: Resource) -> None:
        """Insère une ressource. Lève IntegrityError si l'id existe déjà."""
        self._session.add(ResourceORM(**_resource_values(resource)))
        self._session.flush()

    def upsert(self, resource: Resource) -> None:
        """Crée ou remplace la ressource de même id."""
        self._session.merge(ResourceORM(**_resource_values(resource)))
        self._session.flush()

    def upsert_many(self, resources: Iterable[Resource]) -> int:
        """Upsert en masse (conflit sur id); retourne le nombre de lignes écrites."""
        count = 0
        for resource in resources:
            self._session.merge(ResourceORM(**_resource_values(resource)))
            count += 1
        self._session.flush()
        return count

    def _update(self, resource_id: str, **values) -> bool:
        result = self._session.execute(
            update(ResourceORM).where(ResourceORM.id == resource_id).values(**values)
        )
        return result.rowcount > 0

    def set_enabled(self, resource_id: str, enabled: bool) -> bool:
        return self._update(resource_id, enabled=enabled)

    def set_status(self, resource_id: str, status: str, enabled: bool) -> bool:
        return self._update(resource_id, status=status, enabled=enabled)

    def delete(self, resource_id: str) -> bool:
        """Supprime une ressource et ses clics (pas de cascade en base)."""
        self._session.execute(
            delete(ResourceClickORM).where(ResourceClickORM.resource_id == resource_id)
        )
        result = self._session.execute(delete(ResourceORM).where(ResourceORM.id == resource_id))
        return result.rowcount > 0

    def count_pending_since(self, since: datetime) -> int:
        stmt = (
            select(func.count())
            .select_from(ResourceORM)
            .where(ResourceORM.status == "pending", ResourceORM.created_at >= since)
        )
        return int(self._session.execute(stmt).scalar_one())

    def locations(self) -> list[str]:
        """Valeurs non nulles de `location` (rapport d'analyse)."""
        stmt = select(ResourceORM.location).where(ResourceORM.location.is_not(None))
        return list(self._session.execute(stmt).scalars())


class EventCandidateRepo:
    """CRUD pour la table `event_candidates`."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def get(self, candidate_id: str) -> EventCandidate | None:
        row = self._session.get(EventCandidateORM, candidate_id)
        return _to_candidate(row) if row else None

    def list_by_status(self, status: str | None = None) -> list[EventCandidate]:
        """Candidats, du plus récent au plus ancien, filtrables par statut."""
        stmt = select(EventCandidateORM)
        if status:
            stmt = stmt.where(EventCandidateORM.status == status)
        stmt = stmt.order_by(EventCandidateORM.created_at.desc())
        return [_to_candidate(r) for r in self._session.execute(stmt).scalars()]

    def add(self, candidate: EventCandidate) -> None:
        values = candidate.model_dump(include=set(_CANDIDATE_FIELDS), exclude_none=True)
        self._session.add(EventCandidateORM(**values))
        self._session.flush()

    def mark_promoted(self, candidate_id: str, resource_id: str, when: datetime) -> bool:
        result = self._session.execute(
            update(EventCandidateORM)
            .where(EventCandidateORM.id == candidate_id)
            .values(status="promoted", promoted_at=when, promoted_resource_id=resource_id)
        )
        return result.rowcount > 0

    def set_status(self, candidate_id: str, status: str) -> bool:
        result = self._session.execute(
            update(EventCandidateORM)
            .where(EventCandidateORM.id == candidate_id)
            .values(status=status)
        )
        return result.rowcount > 0


class ClickRepo:
    """Insertion des clics (suivi analytique)."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def add(
        self,
        resource_id: str,
        variant: str,
        user_time: str | None,
        user_intents: list[str],
        geo_country: str | None,
    ) -> None:
        self._session.add(
            ResourceClickORM(
                resource_id=resource_id,
                variant=variant,
                user_time=user_time,
                user_intents=list(user_intents),
                geo_country=geo_country,
            )
        )
        self._session.flush()
