"""Tests for the HTTP API."""

import base64
from datetime import datetime
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

VALID_ID = "3f2b8c1e-9a4d-4e5f-8b6a-1c2d3e4f5a6b"
REPO_INFO = {"owner": "acme", "repo": "web", "ref": "main", "filePath": "src/a/b.ts"}


@pytest.fixture
def github_routes() -> dict:
    """Path -> handler(request) for the mocked GitHub API."""
    return {}


@pytest.fixture
def client(config, mock_orchestrator, mock_store, github_routes):
    from fastapi.testclient import TestClient

    from lintelligent.web.app import create_app

    def handler(request: httpx.Request) -> httpx.Response:
        route = github_routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, json={"message": "Not Found"})
        return route(request)

    app = create_app(
        config,
        orchestrator=mock_orchestrator,
        store=mock_store,
        github_transport=httpx.MockTransport(handler),
    )
    with TestClient(app) as test_client:
        yield test_client


def _sign_in(client, config, token="gho_session"):
    from lintelligent.web.session import SESSION_COOKIE, GitHubUser, SessionData, SessionSigner

    signer = SessionSigner(config.session)
    session = SessionData(gh_token=token, gh_user=GitHubUser(id=42, login="octocat"))
    client.cookies.set(SESSION_COOKIE, signer.encode_session(session))


class TestApp:
    """Tests for app-level behaviour."""

    def test_root_and_health(self, client):
        """Test the unauthenticated status endpoints."""
        assert client.get("/").json()["message"] == "Lintelligent API"
        assert client.get("/health").json() == {"status": "healthy", "service": "lintelligent"}

    def test_security_headers(self, client):
        """Test headers added to every response."""
        response = client.get("/health")

        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "DENY"

    def test_body_size_limit(self, client):
        """Test that oversized bodies are refused."""
        response = client.post("/api/review", json={"code": "x" * (200 * 1024)})

        assert response.status_code == 413

    def test_cors_allows_frontend_with_credentials(self, client):
        """Test the CORS preflight for the configured frontend."""
        response = client.options(
            "/api/review",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Content-Type",
            },
        )

        assert response.headers["access-control-allow-origin"] == "http://localhost:3000"
        assert response.headers["access-control-allow-credentials"] == "true"

    def test_lifespan_connects_and_closes(self, config, mock_orchestrator, mock_store):
        """Test startup and shutdown hooks."""
        from fastapi.testclient import TestClient

        from lintelligent.web.app import create_app

        app = create_app(config, orchestrator=mock_orchestrator, store=mock_store)
        with TestClient(app):
            mock_orchestrator.ensure_connected.assert_awaited_once()

        mock_orchestrator.close.assert_awaited_once()
        mock_store.close.assert_awaited_once()

    def test_chunked_body_size_limit(self, client, mock_orchestrator):
        """Test that bodies without Content-Length are counted as read."""
        chunks = iter([b'{"code": "', b"x" * (200 * 1024), b'"}'])

        response = client.post(
            "/api/review", content=chunks, headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 413
        assert response.json() == {"error": "Request body too large"}
        mock_orchestrator.review.assert_not_awaited()

    def test_lifespan_with_context_servers_closes_store(self, config, mock_store):
        """Test shutdown with live tool server subprocesses."""
        from fastapi.testclient import TestClient

        from lintelligent.review.orchestrator import ReviewOrchestrator
        from lintelligent.web.app import create_app

        config.context.enabled = True
        orchestrator = ReviewOrchestrator.from_config(config)
        app = create_app(config, orchestrator=orchestrator, store=mock_store)

        with TestClient(app):
            assert orchestrator.standards_client.connected
            assert orchestrator.repo_client.connected

        assert not orchestrator.standards_client.connected
        assert not orchestrator.repo_client.connected
        mock_store.close.assert_awaited_once()

    def test_unknown_route_uses_error_shape(self, client):
        """Test that framework errors use {"error": ...}."""
        response = client.get("/api/nope")

        assert response.status_code == 404
        assert "error" in response.json()


class TestReviewEndpoint:
    """Tests for POST /api/review."""

    def test_review_success(self, client, mock_orchestrator, mock_store):
        """Test the happy path response shape."""
        from lintelligent.models.review import is_valid_review_id

        response = client.post("/api/review", json={"code": "const x = 1;"})

        assert response.status_code == 200
        data = response.json()
        assert is_valid_review_id(data["id"])
        assert datetime.fromisoformat(data["createdAt"]).tzinfo is not None
        assert set(data["feedback"]) == {"suggestions", "summary", "aiModel"}
        assert len(data["feedback"]["suggestions"]) == 2

        kwargs = mock_orchestrator.review.call_args.kwargs
        assert kwargs["language"] == "javascript"
        assert kwargs["review_type"] == "best-practices"
        assert kwargs["repo_request"] is None

        saved = mock_store.save_review.call_args.args[0]
        assert saved.id == data["id"]
        assert saved.code == "const x = 1;"

    def test_language_and_type_passed_through(self, client, mock_orchestrator):
        """Test explicit language and reviewType."""
        client.post(
            "/api/review",
            json={"code": "x = 1", "language": "python", "reviewType": "security"},
        )

        kwargs = mock_orchestrator.review.call_args.kwargs
        assert kwargs["language"] == "python"
        assert kwargs["review_type"] == "security"

    @pytest.mark.parametrize("body", [{}, {"code": ""}, {"code": 123}, {"code": None}])
    def test_invalid_code_rejected(self, client, mock_orchestrator, body):
        """Test the code field validation."""
        response = client.post("/api/review", json=body)

        assert response.status_code == 400
        data = response.json()
        assert data["error"] == "Validation failed"
        assert "code" in data["details"]["fieldErrors"]
        mock_orchestrator.review.assert_not_awaited()

    def test_repo_info_requires_session(self, client, mock_orchestrator):
        """Test repo reviews without a signed-in user."""
        response = client.post("/api/review", json={"code": "x", "repoInfo": REPO_INFO})

        assert response.status_code == 401
        assert response.json() == {"error": "GitHub authentication required for repo reviews"}
        mock_orchestrator.review.assert_not_awaited()

    def test_repo_info_with_session(self, client, config, mock_orchestrator):
        """Test that the session token is attached to the repo request."""
        _sign_in(client, config, token="gho_repo")

        response = client.post("/api/review", json={"code": "x", "repoInfo": REPO_INFO})

        assert response.status_code == 200
        repo_request = mock_orchestrator.review.call_args.kwargs["repo_request"]
        assert repo_request.access_token == "gho_repo"
        assert repo_request.file_path == "src/a/b.ts"
        assert repo_request.project_id == "acme/web"

    def test_partial_repo_info_ignored(self, client, mock_orchestrator):
        """Test that an incomplete repo reference means a plain review."""
        response = client.post(
            "/api/review", json={"code": "x", "repoInfo": {"owner": "acme", "repo": "web"}}
        )

        assert response.status_code == 200
        assert mock_orchestrator.review.call_args.kwargs["repo_request"] is None

    def test_missing_api_key(self, client, mock_orchestrator):
        """Test the unconfigured model API."""
        mock_orchestrator.is_configured = False

        response = client.post("/api/review", json={"code": "x"})

        assert response.status_code == 500
        assert response.json() == {"error": "AI API key not configured"}

    def test_model_failure_message(self, client, mock_orchestrator):
        """Test that the underlying failure message is returned."""
        mock_orchestrator.review.side_effect = RuntimeError("Model overloaded")

        response = client.post("/api/review", json={"code": "x"})

        assert response.status_code == 500
        assert response.json() == {"error": "Model overloaded"}

    def test_model_failure_fallback_message(self, client, mock_orchestrator):
        """Test the generic message for failures without text."""
        mock_orchestrator.review.side_effect = RuntimeError()

        response = client.post("/api/review", json={"code": "x"})

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to review code. Check server logs for details."}

    def test_save_failure_still_returns_review(self, client, mock_store):
        """Test that persistence failures are invisible to the caller."""
        from lintelligent.storage.store import StorageError

        mock_store.save_review.side_effect = StorageError("database is locked")

        response = client.post("/api/review", json={"code": "x"})

        assert response.status_code == 200
        assert set(response.json()) == {"id", "feedback", "createdAt"}


class TestRatingEndpoint:
    """Tests for PATCH /api/review/{id}/rating."""

    @pytest.mark.parametrize("rating", [1, -1])
    def test_valid_rating(self, client, mock_store, rating):
        """Test thumbs up and down."""
        response = client.patch(f"/api/review/{VALID_ID}/rating", json={"rating": rating})

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Rating received"}
        mock_store.update_rating.assert_awaited_once_with(VALID_ID, rating)

    @pytest.mark.parametrize("body", [{"rating": 0}, {"rating": 2}, {"rating": "x"}, {}])
    def test_invalid_rating(self, client, mock_store, body):
        """Test that anything but +1/-1 is rejected."""
        response = client.patch(f"/api/review/{VALID_ID}/rating", json=body)

        assert response.status_code == 400
        assert "rating" in response.json()["details"]["fieldErrors"]
        mock_store.update_rating.assert_not_awaited()

    def test_invalid_review_id(self, client, mock_store):
        """Test that non-UUID ids are rejected."""
        response = client.patch("/api/review/not-a-uuid/rating", json={"rating": 1})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid review ID format"}
        mock_store.update_rating.assert_not_awaited()

    def test_rating_twice(self, client, mock_store):
        """Test that re-rating succeeds and the last value is written."""
        first = client.patch(f"/api/review/{VALID_ID}/rating", json={"rating": 1})
        second = client.patch(f"/api/review/{VALID_ID}/rating", json={"rating": -1})

        assert first.status_code == second.status_code == 200
        assert [c.args for c in mock_store.update_rating.await_args_list] == [
            (VALID_ID, 1),
            (VALID_ID, -1),
        ]

    def test_store_failure_still_succeeds(self, client, mock_store):
        """Test that rating persistence is best-effort."""
        from lintelligent.storage.store import StorageError

        mock_store.update_rating.side_effect = StorageError("disk full")

        response = client.patch(f"/api/review/{VALID_ID}/rating", json={"rating": 1})

        assert response.status_code == 200


class TestAuthEndpoints:
    """Tests for /api/auth."""

    def test_me_anonymous(self, client):
        """Test /me without a session."""
        assert client.get("/api/auth/me").json() == {"authenticated": False}

    def test_me_signed_in(self, client, config):
        """Test /me with a session."""
        _sign_in(client, config)

        data = client.get("/api/auth/me").json()

        assert data == {"authenticated": True, "user": {"id": 42, "login": "octocat"}}

    def test_tampered_session_is_anonymous(self, client):
        """Test that an unsigned cookie is ignored."""
        client.cookies.set("sess", "not-a-jwt")

        assert client.get("/api/auth/me").json() == {"authenticated": False}

    def test_logout(self, client, config):
        """Test that logout clears the session cookie."""
        _sign_in(client, config)

        response = client.post("/api/auth/logout")

        assert response.json() == {"success": True}
        assert "sess=" in response.headers["set-cookie"]
        assert "Max-Age=0" in response.headers["set-cookie"]

    def test_login_redirects_with_state_cookie(self, client):
        """Test the authorize redirect and its CSRF state."""
        response = client.get("/api/auth/github/login", follow_redirects=False)

        assert response.status_code == 302
        location = urlparse(response.headers["location"])
        assert location.netloc == "github.com"
        assert parse_qs(location.query)["state"][0]
        set_cookie = response.headers["set-cookie"]
        assert set_cookie.startswith("oauth_state=")
        assert "HttpOnly" in set_cookie
        assert "samesite=lax" in set_cookie.lower()

    def test_login_without_oauth_config(self, config, mock_orchestrator, mock_store):
        """Test login when no client id is configured."""
        from fastapi.testclient import TestClient

        from lintelligent.web.app import create_app

        config.github.client_id = ""
        app = create_app(config, orchestrator=mock_orchestrator, store=mock_store)
        with TestClient(app) as test_client:
            response = test_client.get("/api/auth/github/login", follow_redirects=False)

        assert response.status_code == 500
        assert response.json() == {"error": "GitHub OAuth not configured"}

    def _start_login(self, client) -> str:
        response = client.get("/api/auth/github/login", follow_redirects=False)
        return parse_qs(urlparse(response.headers["location"]).query)["state"][0]

    def test_callback_signs_in(self, client, github_routes):
        """Test the full OAuth round trip."""
        github_routes["/login/oauth/access_token"] = lambda r: httpx.Response(
            200, json={"access_token": "gho_fresh"}
        )
        github_routes["/user"] = lambda r: httpx.Response(
            200, json={"id": 7, "login": "mona", "avatar_url": "https://avatars/7"}
        )
        state = self._start_login(client)

        response = client.get(
            "/api/auth/github/callback",
            params={"code": "abc", "state": state},
            follow_redirects=False,
        )

        assert response.status_code == 302
        assert response.headers["location"] == "http://localhost:3000"
        me = client.get("/api/auth/me").json()
        assert me["authenticated"] is True
        assert me["user"]["login"] == "mona"

    def test_callback_missing_code(self, client):
        """Test the missing code error."""
        response = client.get("/api/auth/github/callback", params={"state": "s"})

        assert response.status_code == 400
        assert response.text == "Missing authorization code"

    def test_callback_missing_state(self, client):
        """Test the missing state error."""
        response = client.get("/api/auth/github/callback", params={"code": "c"})

        assert response.status_code == 400
        assert response.text == "Missing state parameter"

    def test_callback_state_mismatch(self, client):
        """Test CSRF protection."""
        self._start_login(client)

        response = client.get(
            "/api/auth/github/callback", params={"code": "c", "state": "forged"}
        )

        assert response.status_code == 403
        assert response.text == "Invalid state parameter - possible CSRF attack"

    def test_callback_exchange_failure(self, client, github_routes):
        """Test a rejected code exchange."""
        github_routes["/login/oauth/access_token"] = lambda r: httpx.Response(401, json={})
        state = self._start_login(client)

        response = client.get(
            "/api/auth/github/callback", params={"code": "bad", "state": state}
        )

        assert response.status_code == 400
        assert response.text == "Failed to exchange code for token"

    def test_callback_profile_failure(self, client, github_routes):
        """Test a failed profile fetch."""
        github_routes["/login/oauth/access_token"] = lambda r: httpx.Response(
            200, json={"access_token": "gho_fresh"}
        )
        state = self._start_login(client)

        response = client.get("/api/auth/github/callback", params={"code": "c", "state": state})

        assert response.status_code == 400
        assert response.text == "Failed to fetch user info"

    def test_callback_unexpected_failure(self, client, github_routes):
        """Test transport errors during the exchange."""

        def fail(request):
            raise httpx.ConnectError("connection refused", request=request)

        github_routes["/login/oauth/access_token"] = fail
        state = self._start_login(client)

        response = client.get("/api/auth/github/callback", params={"code": "c", "state": state})

        assert response.status_code == 500
        assert response.text == "Authentication failed"


class TestGitHubProxy:
    """Tests for /api/github."""

    @pytest.mark.parametrize(
        "path",
        [
            "/api/github/repos",
            "/api/github/repos/acme/web/branches",
            "/api/github/repos/acme/web/tree/main",
            "/api/github/repos/acme/web/contents?path=a.ts",
        ],
    )
    def test_requires_session(self, client, path):
        """Test that every proxy route needs a session."""
        response = client.get(path)

        assert response.status_code == 401
        assert response.json() == {"error": "Not authenticated"}

    def test_list_repos(self, client, config, github_routes):
        """Test the pass-through with the session token."""
        seen = []

        def repos(request):
            seen.append(request)
            return httpx.Response(200, json=[{"full_name": "acme/web"}])

        github_routes["/user/repos"] = repos
        _sign_in(client, config, token="gho_proxy")

        response = client.get("/api/github/repos")

        assert response.status_code == 200
        assert response.json() == [{"full_name": "acme/web"}]
        assert seen[0].headers["Authorization"] == "Bearer gho_proxy"

    def test_upstream_status_passed_through(self, client, config):
        """Test non-2xx upstream responses."""
        _sign_in(client, config)

        response = client.get("/api/github/repos/acme/private/branches")

        assert response.status_code == 404
        assert response.json() == {"error": "Failed to fetch branches"}

    def test_transport_error_is_500(self, client, config, github_routes):
        """Test network failures."""

        def fail(request):
            raise httpx.ConnectError("connection refused", request=request)

        github_routes["/user/repos"] = fail
        _sign_in(client, config)

        response = client.get("/api/github/repos")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch repositories"}

    def test_tree(self, client, config, github_routes):
        """Test the recursive tree lookup."""
        github_routes["/repos/acme/web/branches/main"] = lambda r: httpx.Response(
            200, json={"commit": {"sha": "deadbeef"}}
        )
        github_routes["/repos/acme/web/git/trees/deadbeef"] = lambda r: httpx.Response(
            200, json={"sha": "deadbeef", "tree": [], "truncated": False}
        )
        _sign_in(client, config)

        response = client.get("/api/github/repos/acme/web/tree/main")

        assert response.status_code == 200
        assert response.json()["sha"] == "deadbeef"

    def test_contents_decoded(self, client, config, github_routes):
        """Test base64 decoding of file content."""
        seen = []

        def contents(request):
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "path": "src/a.ts",
                    "encoding": "base64",
                    "content": base64.b64encode(b"let a = 1;").decode(),
                },
            )

        github_routes["/repos/acme/web/contents/src/a.ts"] = contents
        _sign_in(client, config)

        response = client.get(
            "/api/github/repos/acme/web/contents", params={"path": "src/a.ts", "ref": "dev"}
        )

        assert response.status_code == 200
        assert response.json()["content"] == "let a = 1;"
        assert seen[0].url.params["ref"] == "dev"

    def test_contents_requires_path(self, client, config):
        """Test the missing path parameter."""
        _sign_in(client, config)

        response = client.get("/api/github/repos/acme/web/contents")

        assert response.status_code == 400
        assert response.json() == {"error": "Missing path parameter"}

    def test_tree_without_commit_is_500(self, client, config, github_routes):
        """Test a branch payload missing the commit sha."""
        github_routes["/repos/acme/web/branches/main"] = lambda r: httpx.Response(
            200, json={"name": "main"}
        )
        _sign_in(client, config)

        response = client.get("/api/github/repos/acme/web/tree/main")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch file tree"}

    def test_non_json_upstream_is_500(self, client, config, github_routes):
        """Test a successful upstream response that is not JSON."""
        github_routes["/user/repos"] = lambda r: httpx.Response(200, text="<html>oops</html>")
        _sign_in(client, config)

        response = client.get("/api/github/repos")

        assert response.status_code == 500
        assert response.json() == {"error": "Failed to fetch repositories"}
