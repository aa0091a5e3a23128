from campusops.core.config import Settings, settings


def test_session_and_audit_defaults():
    assert settings.SESSION_EXPIRY_DAYS == 7
    assert settings.SESSION_COOKIE_NAME == "token"
    assert settings.AUDIT_DEFAULT_LIMIT == 50
    assert settings.AUDIT_MAX_LIMIT == 200


def test_no_frontend_redirect_setting():
    assert "FRONTEND_URL" not in Settings.model_fields
