from fastapi import FastAPI
from fastapi.testclient import TestClient

from sculp.api.errors import register_error_handlers


def failing_app() -> FastAPI:
    broken = FastAPI()
    register_error_handlers(broken)

    @broken.get("/boom")
    def boom() -> None:
        raise RuntimeError("kaboom")

    return broken


class TestErrorPages:
    def test_not_found(self, client: TestClient) -> None:
        response = client.get("/no-such-page")
        assert response.status_code == 404
        assert "<title>Oh no...</title>" in response.text
        assert "Page not found" in response.text
        assert "&quot;/no-such-page&quot; is not a page. So sorry." in response.text
        assert 'href="/"' in response.text

    def test_missing_mesocycle(self, client: TestClient, signed_in) -> None:
        response = client.get("/app/mesocycles/new/design/00000000-0000-4000-8000-000000000000")
        assert response.status_code == 404
        assert "Page not found" in response.text

    def test_malformed_mesocycle_id(self, client: TestClient, signed_in) -> None:
        path = "/app/mesocycles/new/design/not-a-uuid"
        for response in (client.get(path), client.post(path, data={})):
            assert response.status_code == 404
            assert response.headers["content-type"].startswith("text/html")
            assert f"&quot;{path}&quot; is not a page. So sorry." in response.text

    def test_malformed_query_is_400_page(self, client: TestClient) -> None:
        response = client.get("/dev/checkout", params={"session": "abc"})
        assert response.status_code == 400
        assert "Oh no, something did not go well." in response.text

    def test_uncaught_exception(self) -> None:
        client = TestClient(failing_app(), raise_server_exceptions=False)
        response = client.get("/boom")
        assert response.status_code == 500
        assert "Oh no, something did not go well." in response.text
        assert "&quot;/boom&quot; is currently not working. So sorry." in response.text
        assert "kaboom" not in response.text


class TestHealth:
    def test_health(self, client: TestClient) -> None:
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "service": "web"}

    def test_api_docs_disabled(self, client: TestClient) -> None:
        assert client.get("/docs").status_code == 404
