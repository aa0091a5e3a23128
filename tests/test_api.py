from campusops.core.constants import AuditAction
from campusops.models.audit_log import AuditLog
from campusops.models.user import User


def test_health_ok(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_gatekeeper_rejects_requests_without_credentials(client):
    r = client.get("/api/access", params={"type": "roles"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Authentication required"


def test_invalid_token_is_authentication_failure(client, roles):
    r = client.get("/api/auth/me", headers={"Authorization": "Bearer nonsense"})
    assert r.status_code == 401
    assert r.headers["www-authenticate"] == "Bearer"


class TestLogin:

    def test_login_provisions_and_sets_cookie(self, client, db, roles):
        r = client.post("/api/auth/login", json={"email": "Fresh@Campus.edu", "password": "pw"})

        assert r.status_code == 200
        body = r.json()
        assert body["token"]
        assert body["user"]["email"] == "fresh@campus.edu"
        assert body["user"]["role"] == "STUDENT"
        assert body["user"]["roleDisplayName"] == "Student"

        cookie = r.headers["set-cookie"].lower()
        assert cookie.startswith("token=")
        assert "httponly" in cookie
        assert "samesite=lax" in cookie
        assert "max-age=604800" in cookie

    def test_cookie_alone_authenticates(self, client, roles):
        client.post("/api/auth/login", json={"email": "c@campus.edu", "password": "pw"})

        r = client.get("/api/auth/me")

        assert r.status_code == 200
        assert r.json()["email"] == "c@campus.edu"

    def test_wrong_password(self, client, student):
        r = client.post("/api/auth/login", json={"email": student.email, "password": "nope"})
        assert r.status_code == 401

    def test_disabled_account(self, client, make_user):
        make_user("off@campus.edu", is_active=False)
        r = client.post("/api/auth/login", json={"email": "off@campus.edu", "password": "pw"})
        assert r.status_code == 403

    def test_missing_email(self, client, roles):
        r = client.post("/api/auth/login", json={"password": "pw"})
        assert r.status_code == 400

    def test_logout_clears_cookie(self, client, roles):
        client.post("/api/auth/login", json={"email": "c@campus.edu", "password": "pw"})
        r = client.post("/api/auth/logout")
        assert r.status_code == 200
        assert 'token=""' in r.headers["set-cookie"] or "max-age=0" in r.headers["set-cookie"].lower()


def test_me_reports_allowed_tiles(client, student, auth_headers):
    r = client.get("/api/auth/me", headers=auth_headers(student.email))

    assert r.status_code == 200
    body = r.json()
    assert body["role"] == "STUDENT"
    assert body["isAdmin"] is False
    tiles = {t["tileKey"]: t["canWrite"] for t in body["allowedTiles"]}
    assert tiles["attendance_hub"] is False
    assert tiles["concerns"] is True
    assert "change_access" not in tiles


def test_disabled_user_with_live_token_is_refused(client, db, student, auth_headers):
    headers = auth_headers(student.email)
    student.is_active = False
    db.commit()

    r = client.get("/api/auth/me", headers=headers)
    assert r.status_code == 403


class TestAccessEndpoints:

    def test_submit_and_approve_flow(self, client, db, roles, student, admin, auth_headers):
        student_headers = auth_headers(student.email)
        admin_headers = auth_headers(admin.email)

        r = client.post(
            "/api/access",
            json={"requestedRoleId": roles["FACULTY"].id, "reason": "promoted"},
            headers=student_headers,
        )
        assert r.status_code == 201
        request = r.json()
        assert request["status"] == "PENDING"
        assert request["currentRoleId"] == roles["STUDENT"].id

        r = client.patch(
            "/api/access",
            json={"requestId": request["id"], "status": "APPROVED", "reviewComment": "ok"},
            headers=admin_headers,
        )
        assert r.status_code == 200
        assert r.json()["status"] == "APPROVED"
        assert r.json()["reviewerId"] == admin.id

        # session token still says STUDENT; permissions follow the stored role
        me = client.get("/api/auth/me", headers=student_headers).json()
        assert me["role"] == "FACULTY"

        r = client.patch(
            "/api/access",
            json={"requestId": request["id"], "status": "REJECTED"},
            headers=admin_headers,
        )
        assert r.status_code == 409

    def test_submit_requires_reason(self, client, roles, student, auth_headers):
        r = client.post(
            "/api/access",
            json={"requestedRoleId": roles["FACULTY"].id, "reason": ""},
            headers=auth_headers(student.email),
        )
        assert r.status_code == 400

    def test_submit_unknown_role(self, client, roles, student, auth_headers):
        r = client.post(
            "/api/access",
            json={"requestedRoleId": 999, "reason": "please"},
            headers=auth_headers(student.email),
        )
        assert r.status_code == 404

    def test_direct_change(self, client, db, roles, student, admin, auth_headers):
        r = client.patch(
            "/api/access",
            json={"userId": student.id, "newRoleId": roles["TA"].id},
            headers=auth_headers(admin.email),
        )

        assert r.status_code == 200
        assert r.json()["role"]["name"] == "TA"
        db.expire_all()
        assert db.get(User, student.id).role_id == roles["TA"].id
        assert db.query(AuditLog).filter(
            AuditLog.action == AuditAction.ROLE_CHANGE.value
        ).count() == 1

    def test_patch_needs_exactly_one_shape(self, client, roles, student, admin, auth_headers):
        headers = auth_headers(admin.email)

        assert client.patch("/api/access", json={}, headers=headers).status_code == 400
        both = {
            "userId": student.id, "newRoleId": roles["TA"].id,
            "requestId": 1, "status": "APPROVED",
        }
        assert client.patch("/api/access", json=both, headers=headers).status_code == 400

    def test_patch_is_admin_only(self, client, roles, student, auth_headers):
        r = client.patch(
            "/api/access",
            json={"userId": student.id, "newRoleId": roles["DEVELOPER"].id},
            headers=auth_headers(student.email),
        )
        assert r.status_code == 403

    def test_listings(self, client, roles, student, admin, auth_headers):
        student_headers = auth_headers(student.email)
        admin_headers = auth_headers(admin.email)

        r = client.get("/api/access", params={"type": "roles"}, headers=student_headers)
        assert r.status_code == 200
        counts = {role["name"]: role["userCount"] for role in r.json()}
        assert counts["STUDENT"] == 1
        assert counts["PROGRAM_OFFICE"] == 1

        r = client.get("/api/access", params={"type": "users"}, headers=student_headers)
        assert r.status_code == 403

        r = client.get("/api/access", params={"type": "users"}, headers=admin_headers)
        assert r.status_code == 200
        assert {u["email"] for u in r.json()} == {student.email, admin.email}

        r = client.get("/api/access", params={"type": "requests"}, headers=admin_headers)
        assert r.status_code == 200
        assert r.json() == []

        assert client.get("/api/access", headers=admin_headers).status_code == 400
        r = client.get("/api/access", params={"type": "bogus"}, headers=admin_headers)
        assert r.status_code == 400


class TestAuditEndpoint:

    def test_recent_entries_for_admin(self, client, roles, student, admin, auth_headers):
        headers = auth_headers(admin.email)
        for role in ("TA", "COCO", "FACULTY"):
            client.patch(
                "/api/access",
                json={"userId": student.id, "newRoleId": roles[role].id},
                headers=headers,
            )

        r = client.get("/api/audit", params={"limit": 2}, headers=headers)

        assert r.status_code == 200
        entries = r.json()
        assert len(entries) == 2
        assert entries[0]["details"]["newRole"] == "FACULTY"
        assert entries[1]["details"]["newRole"] == "COCO"
        assert entries[0]["actorEmail"] == admin.email

        r = client.get(f"/api/audit/User/{student.id}", headers=headers)
        assert [e["details"]["newRole"] for e in r.json()] == ["FACULTY", "COCO", "TA"]

    def test_limit_beyond_maximum_is_clamped(self, client, admin, auth_headers):
        r = client.get("/api/audit", params={"limit": 500}, headers=auth_headers(admin.email))
        assert r.status_code == 200

    def test_audit_is_admin_only(self, client, student, auth_headers):
        r = client.get("/api/audit", headers=auth_headers(student.email))
        assert r.status_code == 403


class TestRoleEndpoints:

    def test_set_permission_via_api(self, client, roles, admin, auth_headers):
        headers = auth_headers(admin.email)
        role_id = roles["SODEXO"].id

        r = client.put(
            f"/api/roles/{role_id}/permissions",
            json={"tileKey": "concerns", "canAccess": True, "canWrite": True},
            headers=headers,
        )
        assert r.status_code == 200
        assert r.json()["canWrite"] is True

        r = client.get(f"/api/roles/{role_id}/permissions", headers=headers)
        assert {p["tileKey"] for p in r.json()} == {"timetable", "sodexo_support", "concerns"}

    def test_write_without_access_rejected(self, client, roles, admin, auth_headers):
        r = client.put(
            f"/api/roles/{roles['TA'].id}/permissions",
            json={"tileKey": "concerns", "canAccess": False, "canWrite": True},
            headers=auth_headers(admin.email),
        )
        assert r.status_code == 400

    def test_upsert_role_is_admin_only(self, client, roles, student, admin, auth_headers):
        body = {"name": "TA", "displayName": "Tutor", "isAdmin": False}

        r = client.put("/api/roles", json=body, headers=auth_headers(student.email))
        assert r.status_code == 403

        r = client.put("/api/roles", json=body, headers=auth_headers(admin.email))
        assert r.status_code == 200
        assert r.json()["displayName"] == "Tutor"
        assert r.json()["id"] == roles["TA"].id


def test_admin_can_disable_account(client, student, admin, auth_headers):
    r = client.patch(
        f"/api/admin/users/{student.id}/status",
        json={"isActive": False},
        headers=auth_headers(admin.email),
    )
    assert r.status_code == 200
    assert r.json()["isActive"] is False

    r = client.post("/api/auth/login", json={"email": student.email, "password": "pw"})
    assert r.status_code == 403
