from core.config import Settings


def test_cors_origins_accepts_comma_separated_string():
    s = Settings(SECRET_KEY="x", CORS_ORIGINS="https://earthcare.network, http://localhost:5173")
    assert s.CORS_ORIGINS == ["https://earthcare.network", "http://localhost:5173"]


def test_cors_origins_accepts_json_list(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", '["https://earthcare.network"]')
    assert Settings(SECRET_KEY="x").CORS_ORIGINS == ["https://earthcare.network"]


def test_flags():
    s = Settings(SECRET_KEY="x", ENVIRONMENT="Production", STRIPE_SECRET_KEY="")
    assert s.IS_PRODUCTION
    assert not s.STRIPE_ENABLED
