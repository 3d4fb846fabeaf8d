import logging

from circuit_challenge.core.config import Settings
from utils.logger_config import configure_logging


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("MAX_LIVES", "3")
    monkeypatch.setenv("MISTAKE_PENALTY", "15")
    settings = Settings()
    assert settings.MAX_LIVES == 3
    assert settings.MISTAKE_PENALTY == 15
    assert settings.CORRECT_REWARD == 10


def test_errors_reach_the_log_file(tmp_path):
    log_file = tmp_path / "errors.log"
    configure_logging("warning", str(log_file))
    logger = logging.getLogger("circuit_challenge.tests")
    logger.warning("only on the console")
    logger.error("generation blew up")
    for handler in logging.getLogger().handlers:
        handler.flush()

    text = log_file.read_text()
    assert "generation blew up" in text
    assert "only on the console" not in text
    assert logging.getLogger("circuit_challenge.engine.generator").level == logging.INFO
