from config import Settings
from shared.cosmos_config import STOREFRONT_CONTAINERS


def test_defaults(monkeypatch):
    monkeypatch.delenv("RETURN_WINDOW_DAYS", raising=False)
    monkeypatch.delenv("BONUS_POINTS_PER_EURO", raising=False)
    current = Settings()
    assert current.return_window_days == 30
    assert current.bonus_points_per_euro == 3.5


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("RETURN_WINDOW_DAYS", "14")
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("COSMOS_DATABASE", "storefront-test")
    current = Settings()
    assert current.return_window_days == 14
    assert current.log_level == "debug"
    assert current.cosmos_database == "storefront-test"


def test_storefront_containers():
    assert STOREFRONT_CONTAINERS == {
        "orders": "Storefront_Orders",
        "returns": "Storefront_Returns",
    }
