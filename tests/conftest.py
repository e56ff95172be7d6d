import os
import sys
from pathlib import Path
from typing import Dict

import pytest
from fastapi.testclient import TestClient

os.environ.setdefault("FUNDAUTH_ENVIRONMENT", "test")
os.environ.setdefault("FUNDAUTH_DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("FUNDAUTH_LOG_JSON", "false")
os.environ.setdefault("FUNDAUTH_SEED_ON_STARTUP", "false")

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from fundauth.core.config import get_settings

get_settings.cache_clear()

from fundauth.api.identity import set_identity_resolver  # noqa: E402
from fundauth.core.database import engine, session_scope  # noqa: E402
from fundauth.main import create_app  # noqa: E402
from fundauth.models import Base  # noqa: E402
from fundauth.services.bootstrap import BootstrapService  # noqa: E402

ADMIN_USER_ID = "admin-user"


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    set_identity_resolver(None)
    yield
    set_identity_resolver(None)
    Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client() -> TestClient:  # noqa: ANN001
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def seeded_catalog() -> None:
    with session_scope() as session:
        service = BootstrapService(session)
        service.run()
        service.grant_super_admin(ADMIN_USER_ID)


@pytest.fixture()
def admin_headers(seeded_catalog) -> Dict[str, str]:  # noqa: ANN001
    return {"X-Actor-Id": ADMIN_USER_ID, "X-Actor-Email": "admin@fund.example"}
