import logging
import uuid

from quantify.logging import get_logger, resolve_level


def test_resolve_level_accepts_names_and_numbers():
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level(" warn ") == logging.WARNING
    assert resolve_level(logging.ERROR) == logging.ERROR
    assert resolve_level("chatty") == logging.INFO
    assert resolve_level(None) == logging.INFO


def test_get_logger_configures_once(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.delenv("LOG_FILE", raising=False)
    name = f"once-{uuid.uuid4().hex}"
    logger = get_logger(name)
    assert logger.name == f"quantify.{name}"
    assert logger.level == logging.DEBUG
    assert logger.propagate is False
    assert get_logger(name) is logger
    assert len(logger.handlers) == 1


def test_log_file_receives_records(tmp_path, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    log_file = tmp_path / "quantify.log"
    monkeypatch.setenv("LOG_FILE", str(log_file))
    logger = get_logger(f"file-{uuid.uuid4().hex}")
    logger.info("stock synced")
    for handler in logger.handlers:
        handler.flush()
    assert "INFO: stock synced" in log_file.read_text(encoding="utf-8")
    for handler in logger.handlers:
        handler.close()


def test_unopenable_log_file_falls_back_to_stream(tmp_path, monkeypatch):
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "missing-dir" / "quantify.log"))
    logger = get_logger(f"nofile-{uuid.uuid4().hex}")
    assert [type(h) for h in logger.handlers] == [logging.StreamHandler]
