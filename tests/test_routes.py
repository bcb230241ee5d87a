"""End-to-end request flows through the gateway middleware and the routers."""
import httpx
import pytest
from fastapi.testclient import TestClient

from app.config import settings
from app.models.application import Application, ApplicationStatus
from app.models.profile import Profile, ROLE_ADMIN
from app.services import lifecycle
from app.services.identity_provider import IdentityProviderClient
from tests.factories import (
    adult_dob,
    bearer,
    make_application,
    make_profile,
    make_token,
    valid_application,
)


def use_provider(client, handler):
    seen = []

    def record(request):
        seen.append(request)
        return handler(request)

    client.app.state.identity_client = IdentityProviderClient(
        base_url="https://idp.test",
        api_key="anon-key",
        timeout=1.0,
        transport=httpx.MockTransport(record),
    )
    return seen


def provider_session(user_id="u-1", confirmed=True):
    user = {"id": user_id, "email": f"{user_id}@example.com", "user_metadata": {"full_name": "Ada Lovelace"}}
    if confirmed:
        user["email_confirmed_at"] = "2026-01-01T00:00:00Z"
    return {"access_token": make_token(user_id, verified=confirmed), "token_type": "bearer", "user": user}


# ------------------ gateway ------------------

def test_landing_is_public(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["event"] == settings.EVENT_NAME


def test_public_page_survives_a_broken_token(client):
    assert client.get("/schedule", headers=bearer("garbage")).status_code == 200


def test_anonymous_dashboard_redirects_to_login(client):
    response = client.get("/dashboard")
    assert response.status_code == 303
    assert response.headers["location"] == "/auth/login"


def test_login_page_is_open_to_anonymous(client):
    response = client.get("/auth/login")
    assert response.status_code == 200
    assert response.json()["providers"] == settings.OAUTH_PROVIDERS


def test_verified_user_is_bounced_from_login(client, db):
    make_profile(db, "u-1")
    response = client.get("/auth/login", headers=bearer(make_token("u-1")))
    assert response.status_code == 303
    assert response.headers["location"] == "/dashboard"


def test_unverified_user_goes_to_verify_email(client):
    response = client.get("/profile", headers=bearer(make_token("u-1", verified=False)))
    assert response.status_code == 303
    assert response.headers["location"] == "/auth/verify-email"


def test_unverified_user_sees_verify_instructions(client):
    response = client.get("/auth/verify-email", headers=bearer(make_token("u-1", verified=False)))
    assert response.status_code == 200
    assert response.json()["email"] == "u-1@example.com"


def test_incomplete_profile_redirects_to_profile(client, db):
    make_profile(db, "u-1", complete=False)
    response = client.get("/dashboard/application", headers=bearer(make_token("u-1")))
    assert response.status_code == 303
    assert response.headers["location"] == "/profile"


def test_first_visit_without_profile_redirects_to_profile(client):
    response = client.get("/dashboard", headers=bearer(make_token("brand-new")))
    assert response.headers["location"] == "/profile"


def test_malformed_token_fails_closed(client):
    response = client.get("/dashboard", headers=bearer("garbage"))
    assert response.status_code == 503


def test_expired_token_is_treated_as_anonymous(client):
    response = client.get("/dashboard", headers=bearer(make_token("u-1", expires_in=-60)))
    assert response.headers["location"] == "/auth/login"


def test_unclassified_route_is_denied(client):
    assert client.get("/internal/metrics").status_code == 403


def test_session_cookie_is_accepted(client, db):
    make_profile(db, "u-1")
    cookie = {"Cookie": f"{settings.SESSION_COOKIE_NAME}={make_token('u-1')}"}
    assert client.get("/dashboard", headers=cookie).status_code == 200


# ------------------ profile ------------------

def test_profile_completion_unlocks_dashboard(client, db):
    headers = bearer(make_token("u-1", email="ada@example.com"))

    created = client.get("/profile", headers=headers)
    assert created.status_code == 200
    assert created.json()["is_profile_complete"] is False

    assert client.get("/dashboard", headers=headers).headers["location"] == "/profile"

    saved = client.put(
        "/profile",
        headers=headers,
        json={"display_name": "Ada", "school": "Cambridge", "dob": adult_dob().isoformat(), "role": "admin"},
    )
    assert saved.status_code == 200
    body = saved.json()
    assert body["is_profile_complete"] is True
    assert body["role"] == "applicant"

    dashboard = client.get("/dashboard", headers=headers)
    assert dashboard.status_code == 200
    card = dashboard.json()["application"]
    assert card["status"] == ApplicationStatus.DRAFT.value
    assert card["can_edit"] is True


def test_profile_validation_errors(client):
    headers = bearer(make_token("u-1"))
    response = client.put("/profile", headers=headers, json={"school": "Cambridge", "dob": "2025-01-01"})
    assert response.status_code == 422
    assert "dob" in response.json()["errors"]


def test_profile_field_longer_than_column_is_rejected(client, db):
    headers = bearer(make_token("u-1"))
    response = client.put(
        "/profile",
        headers=headers,
        json={"display_name": "A" * 500, "school": "Cambridge", "dob": adult_dob().isoformat()},
    )
    assert response.status_code == 422
    assert ["body", "display_name"] in [error["loc"] for error in response.json()["detail"]]
    assert db.query(Profile).filter(Profile.is_profile_complete.is_(True)).count() == 0


# ------------------ applicant dashboard ------------------

def test_submit_then_resubmit(client, db):
    make_profile(db, "u-1")
    headers = bearer(make_token("u-1"))

    first = client.post("/dashboard/application", headers=headers, json=valid_application())
    assert first.status_code == 200
    assert first.json()["status"] == ApplicationStatus.UNDER_REVIEW.value

    second = client.post("/dashboard/application", headers=headers, json=valid_application(goals="again"))
    assert second.status_code == 409

    card = client.get("/dashboard", headers=headers).json()["application"]
    assert card["status"] == ApplicationStatus.UNDER_REVIEW.value
    assert card["can_edit"] is False
    assert db.query(Application).count() == 1


def test_submit_requires_agreements(client, db):
    make_profile(db, "u-1")
    response = client.post(
        "/dashboard/application",
        headers=bearer(make_token("u-1")),
        json=valid_application(mlh_code_of_conduct=False),
    )
    assert response.status_code == 422
    assert "mlh_code_of_conduct" in response.json()["errors"]


def test_draft_round_trip(client, db):
    make_profile(db, "u-1")
    headers = bearer(make_token("u-1"))

    assert client.get("/dashboard/application", headers=headers).json() is None

    saved = client.put("/dashboard/application/draft", headers=headers, json={"goals": "Learn Rust"})
    assert saved.status_code == 200
    assert saved.json()["status"] == ApplicationStatus.DRAFT.value

    loaded = client.get("/dashboard/application", headers=headers).json()
    assert loaded["goals"] == "Learn Rust"


@pytest.mark.parametrize("path,method", [
    ("/dashboard/application", "post"),
    ("/dashboard/application/draft", "put"),
])
def test_oversized_application_values_are_rejected(client, db, path, method):
    make_profile(db, "u-1")
    payload = valid_application(tshirt_size="X" * 500, graduation_year=10 ** 12)
    response = getattr(client, method)(path, headers=bearer(make_token("u-1")), json=payload)
    assert response.status_code == 422
    fields = {error["loc"][-1] for error in response.json()["detail"]}
    assert {"tshirt_size", "graduation_year"} <= fields
    assert db.query(Application).count() == 0


def test_unexpected_error_is_answered_like_a_gateway_deny(client, db, monkeypatch):
    make_profile(db, "u-1")

    def broken_lookup(session, owner_id):
        raise RuntimeError("template exploded")

    monkeypatch.setattr(lifecycle, "get_application_for_owner", broken_lookup)
    with TestClient(client.app, raise_server_exceptions=False, follow_redirects=False) as raw:
        response = raw.get("/dashboard", headers=bearer(make_token("u-1")))

    assert response.status_code == 503
    assert response.json() == {"detail": "Service temporarily unavailable. Please retry."}
    assert "template exploded" not in response.text


# ------------------ admin ------------------

@pytest.fixture
def admin_headers(db):
    make_profile(db, "admin-1", role=ROLE_ADMIN)
    return bearer(make_token("admin-1"))


def test_admin_overview(client, db, admin_headers):
    make_profile(db, "u-1")
    make_application(db, "u-1")
    response = client.get("/admin", headers=admin_headers)
    assert response.status_code == 200
    body = response.json()
    assert body["stats"]["pending"] == 1
    assert body["applications"]["total_count"] == 1


def test_non_admin_is_sent_to_dashboard(client, db):
    make_profile(db, "u-1")
    response = client.get("/admin", headers=bearer(make_token("u-1")))
    assert response.status_code == 303
    assert response.headers["location"] == "/dashboard"


def test_token_role_claim_does_not_grant_admin(client, db):
    make_profile(db, "u-1")
    response = client.get("/admin", headers=bearer(make_token("u-1", role="admin")))
    assert response.headers["location"] == "/dashboard"


def test_demoted_admin_loses_access_immediately(client, db, admin_headers):
    assert client.get("/admin", headers=admin_headers).status_code == 200
    db.query(Profile).filter(Profile.id == "admin-1").update({"role": "applicant"})
    db.commit()
    assert client.get("/admin", headers=admin_headers).status_code == 303


def test_admin_list_filters(client, db, admin_headers):
    for user_id, status in (("u-1", ApplicationStatus.UNDER_REVIEW), ("u-2", ApplicationStatus.ACCEPTED)):
        make_profile(db, user_id)
        make_application(db, user_id, status=status)

    response = client.get(
        "/admin/applications",
        headers=admin_headers,
        params={"status": "Accepted", "search": "U-2", "page_size": 10},
    )
    assert response.status_code == 200
    body = response.json()
    assert [row["user_id"] for row in body["rows"]] == ["u-2"]
    assert body["page_size"] == 10


def test_admin_transition_and_invalid_transition(client, db, admin_headers):
    make_profile(db, "u-1")
    application = make_application(db, "u-1")

    accepted = client.post(
        f"/admin/applications/{application.id}/status",
        headers=admin_headers,
        json={"status": "Accepted"},
    )
    assert accepted.status_code == 200
    assert accepted.json()["status"] == "Accepted"

    flipped = client.post(
        f"/admin/applications/{application.id}/status",
        headers=admin_headers,
        json={"status": "Rejected"},
    )
    assert flipped.status_code == 409


def test_admin_bulk_status(client, db, admin_headers):
    ids = []
    for i, status in enumerate([ApplicationStatus.UNDER_REVIEW, ApplicationStatus.UNDER_REVIEW, ApplicationStatus.ACCEPTED]):
        make_profile(db, f"u-{i}")
        ids.append(make_application(db, f"u-{i}", status=status).id)

    response = client.post(
        "/admin/applications/bulk-status",
        headers=admin_headers,
        json={"application_ids": ids + ["ghost"], "status": "Accepted"},
    )
    assert response.status_code == 200
    body = response.json()
    assert sorted(body["succeeded"]) == sorted(ids[:2])
    assert body["failed"] == {ids[2]: "InvalidTransition", "ghost": "NotFound"}


def test_admin_application_detail(client, db, admin_headers):
    make_profile(db, "u-1", display_name="Ada")
    application = make_application(db, "u-1")
    response = client.get(f"/admin/applications/{application.id}", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["applicant"]["display_name"] == "Ada"
    assert client.get("/admin/applications/missing", headers=admin_headers).status_code == 404


# ------------------ auth flows ------------------

def test_password_login_sets_session_cookie(client, db):
    seen = use_provider(client, lambda r: httpx.Response(200, json=provider_session("u-1")))

    response = client.post("/auth/login", json={"email": "U-1@Example.com", "password": "secret1"})
    assert response.status_code == 200
    body = response.json()
    assert body["next"] == "/profile"
    assert response.cookies.get(settings.SESSION_COOKIE_NAME) == body["access_token"]
    assert b"u-1@example.com" in seen[0].content
    assert db.query(Profile).filter(Profile.id == "u-1").count() == 1


def test_bad_password_is_unauthorized(client):
    use_provider(client, lambda r: httpx.Response(400, json={"error_description": "Invalid login credentials"}))
    response = client.post("/auth/login", json={"email": "a@example.com", "password": "nope"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid login credentials"


def test_login_when_provider_is_down(client):
    use_provider(client, lambda r: httpx.Response(503))
    response = client.post("/auth/login", json={"email": "a@example.com", "password": "secret1"})
    assert response.status_code == 503


def test_signup_requires_verification(client, db):
    user = {"id": "new-1", "email": "new@example.com", "user_metadata": {}}
    use_provider(client, lambda r: httpx.Response(200, json=user))

    response = client.post(
        "/auth/signup",
        json={"email": "new@example.com", "password": "secret1", "display_name": "Newbie"},
    )
    assert response.status_code == 200
    assert response.json()["next"] == "/auth/verify-email"
    profile = db.query(Profile).filter(Profile.id == "new-1").one()
    assert profile.display_name == "Newbie"
    assert profile.is_profile_complete is False


def test_oauth_start_redirects_with_pkce(client):
    response = client.get("/auth/oauth/github")
    assert response.status_code == 303
    location = httpx.URL(response.headers["location"])
    assert location.path == "/auth/v1/authorize"
    assert location.params["provider"] == "github"
    assert response.cookies.get("pkce-verifier")


def test_oauth_unknown_provider(client):
    assert client.get("/auth/oauth/myspace").status_code == 404


def test_oauth_callback_creates_session(client, db):
    seen = use_provider(client, lambda r: httpx.Response(200, json=provider_session("oauth-1")))
    response = client.get(
        "/auth/callback",
        params={"code": "abc"},
        headers={"Cookie": "pkce-verifier=the-verifier"},
    )
    assert response.status_code == 303
    assert response.headers["location"] == "/profile"
    assert response.cookies.get(settings.SESSION_COOKIE_NAME)
    assert b"the-verifier" in seen[0].content
    assert db.query(Profile).filter(Profile.id == "oauth-1").one().display_name == "Ada Lovelace"


def test_oauth_callback_without_code(client):
    response = client.get("/auth/callback")
    assert response.headers["location"] == "/auth/login?error=missing_code"


def test_oauth_callback_with_rejected_code(client):
    use_provider(client, lambda r: httpx.Response(400, json={"msg": "invalid flow state"}))
    response = client.get("/auth/callback", params={"code": "stale"})
    assert response.headers["location"] == "/auth/login?error=auth_failed"


def test_logout_for_verified_session(client, db):
    make_profile(db, "u-1")
    seen = use_provider(client, lambda r: httpx.Response(204))

    response = client.post("/auth/logout", headers=bearer(make_token("u-1")))
    assert response.status_code == 200
    assert response.json()["next"] == "/auth/login"
    assert seen[0].url.path == "/auth/v1/logout"


def test_logout_survives_provider_outage(client):
    use_provider(client, lambda r: httpx.Response(500))
    response = client.post("/auth/logout", headers=bearer(make_token("u-1")))
    assert response.status_code == 200


# ------------------ health ------------------

def test_health_reports_database(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["database"]["status"] == "connected"
    assert body["database"]["type"] == "sqlite"


def test_liveness(client):
    assert client.get("/health").json() == {"status": "healthy"}
