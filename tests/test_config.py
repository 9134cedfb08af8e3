"""Tests for settings and logging setup."""

import logging

import pytest

from meetscribe.config import Settings, configure_logging, get_settings
from meetscribe.fusion.models import FusionOptions


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.RUN_LENGTH == 5
    assert settings.MIN_GAP_WORDS == 7
    assert settings.GAP_ABSORB_POLICY == "unconditional"
    assert settings.HALLUCINATION_NGRAM == 8
    assert settings.filler_words == frozenset({"uh", "um"})


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("RUN_LENGTH", "4")
    monkeypatch.setenv("FILLER_WORDS", " Uh, um ,like ")
    settings = get_settings()
    assert settings.RUN_LENGTH == 4
    assert settings.filler_words == frozenset({"uh", "um", "like"})


def test_fusion_options_from_settings(monkeypatch):
    monkeypatch.setenv("GAP_ABSORB_POLICY", "anchored")
    monkeypatch.setenv("HALLUCINATION_KEEP_ONE", "true")
    options = FusionOptions.from_settings(get_settings())
    assert options.gap_policy == "anchored"
    assert options.hallucination_keep_one is True


@pytest.mark.parametrize(
    "kwargs",
    [dict(run_length=0), dict(min_gap_words=-1), dict(hallucination_min_repeats=1), dict(gap_policy="never")],
)
def test_fusion_options_rejects_invalid(kwargs):
    with pytest.raises(ValueError):
        FusionOptions(**kwargs)


def test_configure_logging_with_file(tmp_path, monkeypatch):
    log_file = tmp_path / "logs" / "meetscribe.log"
    monkeypatch.setenv("LOG_LEVEL", "debug")
    monkeypatch.setenv("LOG_FILE", str(log_file))
    configure_logging()
    try:
        assert logging.getLogger().level == logging.DEBUG
        logging.getLogger("meetscribe.test").debug("hello log")
        for handler in logging.getLogger().handlers:
            handler.flush()
        assert "hello log" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in list(logging.getLogger().handlers):
            handler.close()
        logging.basicConfig(level=logging.WARNING, force=True)
