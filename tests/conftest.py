"""Configuration de test pour pytest.

Ce module ajoute la racine du projet au sys.path, force une base SQLite en mémoire et remet les
tables à zéro avant chaque test. Le résolveur géographique du conteneur est remplacé par un
résolveur branché sur un transport httpx factice: aucun test ne sort sur le réseau.
"""

import os
import sys

import pytest

# Ensure project root is on sys.path so that
# imports like `from howdoihelp...` resolve.
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

os.environ.pop("DATABASE_URL", None)
os.environ.setdefault("APP_ENV", "test")

from fastapi.testclient import TestClient  # noqa: E402

from howdoihelp.app.main import app  # noqa: E402
from howdoihelp.core.container import container  # noqa: E402
from howdoihelp.infra.repo.models import Base  # noqa: E402
from tests.fakes import US_PAYLOAD, fixed_resolver  # noqa: E402


@pytest.fixture(autouse=True)
def clean_db():
    """Recrée le schéma sur le moteur partagé du conteneur."""
    Base.metadata.drop_all(container.engine)
    Base.metadata.create_all(container.engine)
    yield


@pytest.fixture(autouse=True)
def fake_geo(monkeypatch):
    """Résolveur du conteneur renvoyant par défaut une localisation américaine."""
    resolver = fixed_resolver(US_PAYLOAD)
    monkeypatch.setattr(container, "geo_resolver", resolver)
    return resolver


@pytest.fixture()
def client():
    return TestClient(app)


@pytest.fixture()
def admin_client(client):
    """Client portant le cookie de session admin."""
    client.cookies.set("admin_session", "authenticated")
    return client
