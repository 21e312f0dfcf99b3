"""SQLAlchemy models for persistence layer (resources, event candidates, clicks)."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Classe de base pour tous les modèles SQLAlchemy."""

    metadata = MetaData()


class ResourceORM(Base):
    """Modèle ORM pour les ressources référencées."""

    __tablename__ = "resources"

    id = Column(String(255), primary_key=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False, default="")
    url = Column(Text, nullable=False)
    source_org = Column(Text, nullable=False, default="")
    category = Column(String(32), nullable=False)
    location = Column(Text, nullable=False, default="Global")
    min_minutes = Column(Integer, nullable=False, default=5)
    ev_general = Column(Float, nullable=False, default=0.5)
    ev_positioned = Column(Float, nullable=True)
    friction = Column(Float, nullable=False, default=0.3)
    enabled = Column(Boolean, nullable=False, default=True)
    status = Column(String(16), nullable=False, default="approved")
    event_date = Column(String(32), nullable=True)
    event_type = Column(String(64), nullable=True)
    deadline_date = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    submitted_by = Column(Text, nullable=True)
    background_tags = Column(JSON, nullable=False, default=list)
    position_tags = Column(JSON, nullable=False, default=list)
    source = Column(String(64), nullable=True)
    source_id = Column(String(255), nullable=True)
    verified_at = Column(DateTime(timezone=True), nullable=True)
    url_status = Column(String(32), nullable=True)
    activity_score = Column(Float, nullable=True)
    verification_notes = Column(Text, nullable=True)

    __table_args__ = (
        Index("idx_resources_category", "category"),
        Index("idx_resources_status_created", "status", "created_at"),
    )


class EventCandidateORM(Base):
    """Modèle ORM pour les événements candidats (pipeline d'évaluation)."""

    __tablename__ = "event_candidates"

    id = Column(String(255), primary_key=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    url = Column(Text, nullable=False)
    source = Column(String(64), nullable=False)
    source_id = Column(String(255), nullable=True)
    source_org = Column(Text, nullable=True)
    location = Column(Text, nullable=True)
    event_date = Column(String(32), nullable=True)
    submitted_by = Column(Text, nullable=True)
    ai_summary = Column(Text, nullable=True)
    ai_suggested_ev = Column(Float, nullable=True)
    ai_suggested_friction = Column(Float, nullable=True)
    ai_event_type = Column(String(64), nullable=True)
    status = Column(String(16), nullable=False, default="pending")
    promoted_at = Column(DateTime(timezone=True), nullable=True)
    promoted_resource_id = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)


class ResourceClickORM(Base):
    """Modèle ORM pour le suivi des clics sur les ressources."""

    __tablename__ = "resource_clicks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    resource_id = Column(String(255), ForeignKey("resources.id"), nullable=False, index=True)
    variant = Column(String(4), nullable=False, index=True)
    user_time = Column(String(16), nullable=True)
    user_intents = Column(JSON, nullable=False, default=list)
    geo_country = Column(Text, nullable=True)
    clicked_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
