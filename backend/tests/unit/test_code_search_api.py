"""HTTP contract tests for the search, workspace and outline routes."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from backend.src.api.main import app
from backend.src.models.host import CodeElement
from backend.src.services import config as config_module
from backend.src.services.affinity import HostAffinity
from backend.src.services.code_search import CodeSearchService, get_code_search_service
from backend.src.services.config import AppConfig
from backend.tests.unit.fake_host import FakeHost, numbered_lines

LISTING = "2 matches found\nfoo.cpp(10): void bar() {\nfoo.cpp(15): void bar() {\n"


@pytest.fixture
def service(monkeypatch):
    monkeypatch.delenv("WORKSPACE_ROOT", raising=False)
    config_module.reload_config()
    service = CodeSearchService(
        config=AppConfig(context_lines_before=2, context_lines_after=1),
        affinity=HostAffinity(name="api-test"),
    )
    app.dependency_overrides[get_code_search_service] = lambda: service
    yield service
    app.dependency_overrides = {}
    service.shutdown()
    config_module.get_config.cache_clear()


@pytest.fixture
def client(service):
    with TestClient(app) as client:
        yield client


def _fake_host(tmp_path: Path, **overrides) -> FakeHost:
    values = dict(
        docs={"foo.cpp": numbered_lines(30), "scene.cpp": numbered_lines(40)},
        listing=LISTING,
        candidates={"Render": ["h1"]},
        targets={"h1": ("scene.cpp", 11)},
        elements={
            "scene.cpp": [CodeElement(kind="function", full_name="Scene::Render", start_line=10, end_line=12)]
        },
    )
    values.update(overrides)
    return FakeHost(tmp_path, **values)


class TestWithoutWorkspace:
    def test_find_symbols_is_rejected(self, client: TestClient) -> None:
        response = client.post("/api/search/symbols", json={"symbolName": "Render"})

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "no_workspace"
        assert body["message"] == "No workspace is open"

    def test_find_text_is_rejected(self, client: TestClient) -> None:
        response = client.post("/api/search/text", json={"text": "bar", "searchPath": ""})

        assert response.status_code == 409

    def test_health_reports_no_workspace(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "workspace": None}


class TestFindText:
    def test_results_are_camel_case_with_context(self, client, service, tmp_path: Path) -> None:
        service.attach(_fake_host(tmp_path))

        response = client.post(
            "/api/search/text",
            json={"text": "bar", "searchPath": "", "contextBefore": 2, "contextAfter": 1, "fileExtension": "*.cpp"},
        )

        assert response.status_code == 200
        results = response.json()["results"]
        assert results == [
            {"filePath": "foo.cpp", "line": 10, "context": "line 8\nline 9\nline 10\nline 11"},
            {"filePath": "foo.cpp", "line": 15, "context": "line 13\nline 14\nline 15\nline 16"},
        ]

    def test_defaults_apply_when_margins_and_filter_are_omitted(self, client, service, tmp_path: Path) -> None:
        host = _fake_host(tmp_path)
        service.attach(host)

        response = client.post("/api/search/text", json={"text": "bar", "searchPath": ""})

        assert response.status_code == 200
        assert response.json()["results"][0]["context"] == "\n".join(f"line {n}" for n in range(5, 16))
        assert host.find_engine.executed[0].file_filter == "*.h;*.cpp"

    def test_search_path_escape_is_usage_error(self, client, service, tmp_path: Path) -> None:
        service.attach(_fake_host(tmp_path))

        response = client.post("/api/search/text", json={"text": "bar", "searchPath": "../.."})

        assert response.status_code == 400
        assert response.json()["error"] == "usage_error"

    def test_find_failure_is_host_unavailable(self, client, service, tmp_path: Path) -> None:
        service.attach(_fake_host(tmp_path, find_mode="failed"))

        response = client.post("/api/search/text", json={"text": "bar", "searchPath": ""})

        assert response.status_code == 503
        assert response.json()["error"] == "host_unavailable"

    def test_missing_fields_are_validation_errors(self, client, service, tmp_path: Path) -> None:
        service.attach(_fake_host(tmp_path))

        response = client.post("/api/search/text", json={"text": ""})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.parametrize(
        "field,value",
        [
            ("contextBefore", [1]),
            ("contextAfter", {"n": 1}),
            ("contextBefore", 2.7),
            ("contextAfter", "many"),
            ("fileExtension", ["*.cpp"]),
        ],
    )
    def test_malformed_optional_fields_are_validation_errors(
        self, client, service, tmp_path: Path, field: str, value
    ) -> None:
        host = _fake_host(tmp_path)
        service.attach(host)

        response = client.post("/api/search/text", json={"text": "bar", "searchPath": "", field: value})

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert host.find_engine.executed == []

    def test_null_and_negative_margins(self, client, service, tmp_path: Path) -> None:
        service.attach(_fake_host(tmp_path))

        response = client.post(
            "/api/search/text",
            json={"text": "bar", "searchPath": "", "contextBefore": None, "contextAfter": -4},
        )

        assert response.status_code == 200
        assert response.json()["results"][0]["context"] == "\n".join(f"line {n}" for n in range(5, 11))


class TestFindSymbols:
    def test_resolved_symbol(self, client, service, tmp_path: Path) -> None:
        service.attach(_fake_host(tmp_path))

        response = client.post("/api/search/symbols", json={"symbolName": "Render"})

        assert response.status_code == 200
        symbols = response.json()["symbols"]
        assert len(symbols) == 1
        assert symbols[0]["name"] == "Scene::Render"
        assert symbols[0]["kind"] == "function"
        assert symbols[0]["filePath"] == "scene.cpp"
        assert symbols[0]["line"] == 10
        assert symbols[0]["context"].startswith("line 8\n")

    def test_unresolved_candidate_yields_empty_list(self, client, service, tmp_path: Path) -> None:
        service.attach(_fake_host(tmp_path, targets={"h1": (None, None)}))

        response = client.post("/api/search/symbols", json={"symbolName": "Render"})

        assert response.status_code == 200
        assert response.json() == {"symbols": []}

    def test_empty_name_is_validation_error(self, client, service, tmp_path: Path) -> None:
        service.attach(_fake_host(tmp_path))

        response = client.post("/api/search/symbols", json={"symbolName": ""})

        assert response.status_code == 400


class TestWorkspaceRoutes:
    def test_attach_and_detach(self, client, tmp_path: Path) -> None:
        attached = client.post("/api/workspace", json={"root": str(tmp_path)})

        assert attached.status_code == 200
        assert attached.json() == {"attached": True, "root": str(tmp_path.resolve())}
        assert client.get("/api/workspace").json()["attached"] is True
        assert client.get("/health").json()["workspace"] == str(tmp_path.resolve())

        detached = client.delete("/api/workspace")

        assert detached.json() == {"attached": False, "root": None}

    def test_attach_missing_directory_is_usage_error(self, client, tmp_path: Path) -> None:
        response = client.post("/api/workspace", json={"root": str(tmp_path / "missing")})

        assert response.status_code == 400
        assert response.json()["error"] == "usage_error"

    def test_detach_closes_the_host(self, client, service, tmp_path: Path) -> None:
        host = _fake_host(tmp_path)
        service.attach(host)

        client.delete("/api/workspace")

        assert host.closed is True


class TestOutline:
    def test_outline_is_flattened(self, client, service, tmp_path: Path) -> None:
        scene = CodeElement(
            kind="class",
            full_name="Scene",
            start_line=1,
            end_line=40,
            children=[CodeElement(kind="function", full_name="Scene::Render", start_line=10, end_line=12)],
        )
        path = str((tmp_path / "scene.cpp").resolve())
        service.attach(_fake_host(tmp_path, elements={path: [scene]}))

        response = client.get("/api/outline", params={"path": "scene.cpp", "maxDepth": 0})

        assert response.status_code == 200
        body = response.json()
        assert body["filePath"] == path
        assert body["elements"] == [{"depth": 0, "kind": "class", "fullName": "Scene", "line": 1}]
        assert body["truncated"] is True

    def test_outline_outside_workspace_is_rejected(self, client, service, tmp_path: Path) -> None:
        service.attach(_fake_host(tmp_path))

        response = client.get("/api/outline", params={"path": "../../etc/passwd"})

        assert response.status_code == 400
