"""Tests for the FastAPI service (rahl.api).

Tests cover:
- POST /api/generate/v2 (success, validation errors, platforms, generator failure)
- POST /api/generate + GET /api/project/{id} polling to completion
- GET /api/project/{id}/files before and after completion
- DELETE /api/project/{id} cancellation
- GET /api/download/{id}
- GET /api/health
"""

from __future__ import annotations

import asyncio
import time
from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from rahl.analyzer import AppAnalyzer
from rahl.api import NEXT_STEPS, create_app
from rahl.config import Config, GenerationConfig
from rahl.orchestrator import GenerationOrchestrator
from rahl.scaffolder.generator import BASE_FILES


pytestmark = pytest.mark.unit


@pytest.fixture
def app(offline_config, orchestrator):
    return create_app(offline_config, orchestrator)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def _poll(client: TestClient, project_id: str, until: set[str], attempts: int = 200) -> dict:
    for _ in range(attempts):
        body = client.get(f"/api/project/{project_id}").json()
        if body["status"] in until:
            return body
        time.sleep(0.01)
    raise AssertionError(f"{project_id} never reached {until}: {body}")


# ---------------------------------------------------------------------------
# POST /api/generate/v2
# ---------------------------------------------------------------------------


class TestGenerateV2:
    def test_success(self, client):
        resp = client.post(
            "/api/generate/v2",
            json={"description": "A todo list app with dark mode", "appName": "My App"},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["projectId"].startswith("rahl_")
        assert body["appName"] == "My App"
        assert body["packageName"] == "com.rahl.myapp"
        assert body["features"]["theme"] == "dark"
        assert body["features"]["screens"] == ["HomeScreen", "ProfileScreen"]
        assert body["files"] == list(BASE_FILES)
        assert body["nextSteps"] == NEXT_STEPS
        assert body["platforms"] == ["android", "ios"]

    def test_default_app_name(self, client):
        body = client.post("/api/generate/v2", json={"description": "login"}).json()
        assert body["appName"] == "RAHLApp"
        assert body["packageName"] == "com.rahl.rahlapp"
        assert body["features"]["hasLogin"] is True

    def test_single_platform(self, client):
        body = client.post(
            "/api/generate/v2", json={"description": "maps", "platform": "ios"}
        ).json()
        assert body["platforms"] == ["ios"]

    def test_result_is_stored(self, client):
        body = client.post("/api/generate/v2", json={"description": "camera"}).json()
        status = client.get(f"/api/project/{body['projectId']}").json()
        assert status["status"] == "completed"
        files = client.get(f"/api/project/{body['projectId']}/files").json()["files"]
        assert list(files) == list(BASE_FILES)

    @pytest.mark.parametrize("payload", [{}, {"description": ""}, {"description": "   "}])
    def test_missing_description(self, client, payload):
        resp = client.post("/api/generate/v2", json=payload)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "App description is required"

    def test_invalid_platform(self, client):
        resp = client.post(
            "/api/generate/v2", json={"description": "x", "platform": "windows"}
        )
        assert resp.status_code == 422

    def test_generator_failure(self, app, client):
        with patch.object(
            app.state.orchestrator, "generate_base", side_effect=RuntimeError("disk full")
        ):
            resp = client.post("/api/generate/v2", json={"description": "x"})
        assert resp.status_code == 500
        assert resp.json()["detail"] == "Generation failed: disk full"


# ---------------------------------------------------------------------------
# Background generation
# ---------------------------------------------------------------------------


class TestBackgroundGeneration:
    def test_generate_and_poll(self, client):
        resp = client.post(
            "/api/generate", json={"description": "Photo diary with login", "appName": "Snap"}
        )
        assert resp.status_code == 202
        started = resp.json()
        assert started["status"] == "queued"
        assert started["progress"] == 0

        final = _poll(client, started["projectId"], {"completed", "failed"})
        assert final["status"] == "completed"
        assert final["progress"] == 100
        assert final["appName"] == "Snap"
        assert final["analysis"]["features"]["hasCamera"] is True
        assert final["error"] is None

        files = client.get(f"/api/project/{started['projectId']}/files").json()["files"]
        assert "lib/screens/loginscreen.dart" in files
        assert "class Snap extends StatelessWidget" in files["lib/main.dart"]

    def test_missing_description(self, client):
        assert client.post("/api/generate", json={}).status_code == 400

    def test_unknown_project(self, client):
        assert client.get("/api/project/rahl_0").status_code == 404
        assert client.get("/api/project/rahl_0/files").status_code == 404
        assert client.delete("/api/project/rahl_0").status_code == 404


class TestCancellation:
    @pytest.fixture
    def client(self, offline_config):
        async def never_finishes(description):
            await asyncio.Event().wait()

        analyzer = AppAnalyzer()
        analyzer.analyze_description = never_finishes
        orchestrator = GenerationOrchestrator(offline_config, analyzer=analyzer)
        with TestClient(create_app(offline_config, orchestrator)) as test_client:
            yield test_client

    def test_files_conflict_then_cancel(self, client):
        project_id = client.post("/api/generate", json={"description": "slow"}).json()[
            "projectId"
        ]
        _poll(client, project_id, {"analyzing"})

        conflict = client.get(f"/api/project/{project_id}/files")
        assert conflict.status_code == 409

        cancelled = client.delete(f"/api/project/{project_id}").json()
        assert cancelled["status"] == "cancelled"
        assert cancelled["progress"] == 10
        assert client.get(f"/api/project/{project_id}").json()["status"] == "cancelled"


# ---------------------------------------------------------------------------
# Download and health
# ---------------------------------------------------------------------------


class TestDownload:
    def test_known_project_lists_its_files(self, client):
        project_id = client.post("/api/generate/v2", json={"description": "x"}).json()[
            "projectId"
        ]
        body = client.get(f"/api/download/{project_id}").json()
        assert body["projectId"] == project_id
        assert body["downloadUrl"] == f"/api/projects/{project_id}.zip"
        assert body["files"] == list(BASE_FILES)

    def test_unknown_project_lists_base_files(self, client):
        body = client.get("/api/download/rahl_42").json()
        assert body["files"] == list(BASE_FILES)
        assert "flutter pub get" in body["instructions"]


class TestHealth:
    def test_ai_disabled(self, client):
        assert client.get("/api/health").json() == {
            "status": "ok",
            "llm": False,
            "model": "qwen2.5-coder:14b",
            "modelInstalled": False,
            "models": [],
        }

    def test_ai_enabled_reports_reachability(self, tmp_path, orchestrator):
        config = Config(output_dir=tmp_path, generation=GenerationConfig(use_ai=True))
        orchestrator.config = config
        installed = ["llama3.1:8b", "qwen2.5-coder:14b"]
        with patch(
            "rahl.api.OllamaClient.is_available", AsyncMock(return_value=True)
        ), patch("rahl.api.OllamaClient.list_models", AsyncMock(return_value=installed)):
            with TestClient(create_app(config, orchestrator)) as test_client:
                body = test_client.get("/api/health").json()
        assert body["llm"] is True
        assert body["models"] == installed
        assert body["modelInstalled"] is True

    def test_unreachable_model_skips_listing(self, tmp_path, orchestrator):
        config = Config(output_dir=tmp_path, generation=GenerationConfig(use_ai=True))
        orchestrator.config = config
        listing = AsyncMock(return_value=["x"])
        with patch(
            "rahl.api.OllamaClient.is_available", AsyncMock(return_value=False)
        ), patch("rahl.api.OllamaClient.list_models", listing):
            with TestClient(create_app(config, orchestrator)) as test_client:
                body = test_client.get("/api/health").json()
        assert body["llm"] is False
        assert body["models"] == []
        listing.assert_not_called()
