"""Stub collaborators and config fixtures for scale tests."""
import json
import pytest
from typing import Dict, List, Optional

from deploy_scale.client import Deployment
from deploy_scale.config.settings import get_settings
from deploy_scale.errors import NotFoundError, RemoteError

TEST_DEPLOYMENT_URL = "dep.example"
TEST_DEPLOYMENT_ID = "dpl_123"
TEST_TOKEN = "test-token"
TEST_TEAM = "team_abc"


def make_deployment(type: str = "DOCKER", state: str = "READY",
                    uid: str = TEST_DEPLOYMENT_ID, url: str = TEST_DEPLOYMENT_URL) -> Deployment:
    return Deployment.model_validate({"uid": uid, "url": url, "type": type, "state": state})


class StubClient:
    """In-memory platform client that records every call."""

    def __init__(self, deployment: Optional[Deployment] = None,
                 lookup_error: Optional[Exception] = None,
                 update_error: Optional[Exception] = None,
                 instance_counts: Optional[List[Dict[str, int]]] = None):
        self.deployment = deployment or make_deployment()
        self.lookup_error = lookup_error
        self.update_error = update_error
        self.instance_counts = list(instance_counts or [])
        self.lookup_calls: List[str] = []
        self.update_calls: List[tuple] = []
        self.count_calls = 0
        self.closed = False

    def find_deployment(self, identifier: str) -> Deployment:
        self.lookup_calls.append(identifier)
        if self.lookup_error is not None:
            raise self.lookup_error
        return self.deployment

    def set_scale(self, deployment_id: str, scale: dict) -> dict:
        self.update_calls.append((deployment_id, scale))
        if self.update_error is not None:
            raise self.update_error
        return {}

    def get_instance_counts(self, deployment_id: str) -> Dict[str, int]:
        self.count_calls += 1
        if len(self.instance_counts) > 1:
            return self.instance_counts.pop(0)
        return self.instance_counts[0] if self.instance_counts else {}

    def close(self) -> None:
        self.closed = True


@pytest.fixture(autouse=True)
def clear_settings_cache(monkeypatch):
    """Isolate every test from SCALE_* variables and the cached settings."""
    for name in ("SCALE_TOKEN", "SCALE_TEAM", "SCALE_API_URL", "SCALE_REGIONS", "SCALE_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def stub_client():
    return StubClient()


@pytest.fixture
def not_found_client():
    return StubClient(lookup_error=NotFoundError("Not found (404)"))


@pytest.fixture
def failing_update_client():
    return StubClient(update_error=RemoteError("Internal error (500)", status=500))


@pytest.fixture
def global_config(tmp_path):
    """A global config directory holding a token and a current team."""
    config_dir = tmp_path / ".now"
    config_dir.mkdir()
    (config_dir / "auth.json").write_text(json.dumps({
        "credentials": [
            {"provider": "other", "token": "wrong"},
            {"provider": "sh", "token": TEST_TOKEN},
        ]
    }))
    (config_dir / "config.json").write_text(json.dumps({"sh": {"currentTeam": TEST_TEAM}}))
    return str(config_dir)


@pytest.fixture
def empty_global_config(tmp_path):
    config_dir = tmp_path / "empty"
    config_dir.mkdir()
    return str(config_dir)
