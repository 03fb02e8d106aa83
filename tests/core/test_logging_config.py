from __future__ import annotations

from membership_app.core.logging_config import AUDIT_LOGGERS, build_logging_config, get_logger


def test_issuance_loggers_write_the_audit_file():
    config = build_logging_config()

    for name in AUDIT_LOGGERS:
        assert "audit" in config["loggers"][name]["handlers"]
    assert "audit" not in config["loggers"]["app"]["handlers"]
    assert config["handlers"]["audit"]["filename"] == "card_audit.log"


def test_get_logger_is_namespaced():
    assert get_logger("card_ranges").name == "app.card_ranges"
