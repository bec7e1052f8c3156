from __future__ import annotations

from datetime import date

import pytest

from fire_burndate.config import (
    DEFAULT_BAND,
    DEFAULT_BUFFER_M,
    FireEvent,
    derive_name_keyword,
    load_extraction_config,
)
from fire_burndate.errors import ConfigurationError


EVENT = FireEvent(
    event_id="CO4020310623920201014",
    name="East_Troublesome_Fire",
    year=2020,
    ignition_point=(-105.8680114589377, 40.28124999635872),
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("BUFFER_M", "FALLBACK_RADIUS_M", "EXPORT_SCALE_M", "MAX_PIXELS", "BAND"):
        monkeypatch.delenv(f"FIRE_BURNDATE_{name}", raising=False)


def test_defaults() -> None:
    config = load_extraction_config(event=EVENT)

    assert config.buffer_m == DEFAULT_BUFFER_M
    assert config.fallback_radius_m == 15000.0
    assert config.export_scale_m == 500.0
    assert config.export_crs == "EPSG:4326"
    assert config.max_pixels == 1_000_000_000
    assert config.band == DEFAULT_BAND
    assert config.season == (date(2020, 1, 1), date(2020, 12, 31))
    assert config.keyword == "TROUBLESOME"


def test_env_overrides_defaults_and_explicit_overrides_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FIRE_BURNDATE_BUFFER_M", "1500")
    monkeypatch.setenv("FIRE_BURNDATE_MAX_PIXELS", "5000")
    monkeypatch.setenv("FIRE_BURNDATE_BAND", "QA")

    from_env = load_extraction_config(event=EVENT)
    explicit = load_extraction_config(event=EVENT, buffer_m=250.0, band="BurnDate")

    assert from_env.buffer_m == 1500.0
    assert from_env.max_pixels == 5000
    assert from_env.band == "QA"
    assert explicit.buffer_m == 250.0
    assert explicit.band == "BurnDate"


def test_invalid_env_value(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FIRE_BURNDATE_EXPORT_SCALE_M", "fine")

    with pytest.raises(ConfigurationError, match="FIRE_BURNDATE_EXPORT_SCALE_M"):
        load_extraction_config(event=EVENT)


@pytest.mark.parametrize(
    "overrides",
    [
        {"buffer_m": -1.0},
        {"fallback_radius_m": 0.0},
        {"export_scale_m": 0.0},
        {"max_pixels": 0},
    ],
)
def test_invalid_values(overrides: dict) -> None:
    with pytest.raises(ConfigurationError):
        load_extraction_config(event=EVENT, **overrides)


def test_name_keyword() -> None:
    assert derive_name_keyword("East_Troublesome_Fire") == "TROUBLESOME"
    assert derive_name_keyword("Cameron Peak Fire") == "CAMERON"
    assert derive_name_keyword("Fire") == "FIRE"
    assert derive_name_keyword("") == ""

    config = load_extraction_config(event=EVENT, name_keyword="Troublesome")
    assert config.keyword == "Troublesome"
