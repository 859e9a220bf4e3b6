import pytest

from bizpulse.config import DEFAULT_TIERS, AppConfig, load_app_config


def _write(tmp_path, content: str):
    path = tmp_path / "bizpulse_config.toml"
    path.write_text(content, encoding="utf-8")
    return path


def test_load_app_config_full(tmp_path) -> None:
    path = _write(
        tmp_path,
        """
[currency]
base = "zar"
secondary = "pkr"
fallback_rate = 16.0
timeout_seconds = 3

[data]
sales = "data/sales.csv"
expenses = "data/expenses.csv"

[locale]
timezone = "Africa/Johannesburg"

[tiers.growth]
price = 600
business_limit = 3

[tiers.enterprise]
business_limit = 0

[display]
mode = "both"
decimals = 1

[logging]
level = "debug"
file = "logs/bizpulse.log"
""",
    )

    config = load_app_config(str(path))

    assert config.currency.base == "ZAR"
    assert config.currency.secondary == "PKR"
    assert config.currency.fallback_rate == 16.0
    assert config.currency.timeout_seconds == 3.0
    assert config.data.sales == (tmp_path / "data" / "sales.csv").resolve()
    assert config.data.businesses is None
    assert config.timezone == "Africa/Johannesburg"
    assert config.tiers["growth"].price == 600.0
    assert config.tiers["growth"].business_limit == 3
    assert config.tiers["enterprise"].business_limit is None
    assert config.tiers["starter"] == DEFAULT_TIERS["starter"]
    assert config.display_mode == "both"
    assert config.decimals == 1
    assert config.log_level == "DEBUG"
    assert config.log_file == (tmp_path / "logs" / "bizpulse.log").resolve()


def test_load_app_config_minimal_uses_defaults(tmp_path) -> None:
    path = _write(tmp_path, "")
    config = load_app_config(str(path))

    defaults = AppConfig()
    assert config.currency == defaults.currency
    assert config.tiers == DEFAULT_TIERS
    assert config.timezone is None
    assert config.display_mode == "table"


def test_load_app_config_missing_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_app_config(str(tmp_path / "nope.toml"))


def test_load_app_config_invalid_toml(tmp_path) -> None:
    path = _write(tmp_path, "[currency\nbase = ")
    with pytest.raises(ValueError, match="Failed to parse"):
        load_app_config(str(path))


@pytest.mark.parametrize(
    "content",
    [
        '[currency]\nfallback_rate = "abc"\n',
        "[currency]\nfallback_rate = 0\n",
        '[tiers.growth]\nbusiness_limit = "many"\n',
        "[tiers.platinum]\nbusiness_limit = 5\n",
        '[display]\nmode = "html"\n',
    ],
)
def test_load_app_config_invalid_values(tmp_path, content) -> None:
    path = _write(tmp_path, content)
    with pytest.raises(ValueError):
        load_app_config(str(path))
