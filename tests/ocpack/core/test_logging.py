# tests/ocpack/core/test_logging.py
import json
import logging
import threading

import pytest

from ocpack.core.logging import (
    DevFormatter,
    JsonFormatter,
    clearLogContext,
    configureLogging,
    getLogContext,
    logContext,
    setLogContext,
)


def _record(msg="hello"):
    return logging.LogRecord("ocpack.test", logging.INFO, __file__, 1, msg, None, None)


@pytest.fixture(autouse=True)
def fresh_log_context():
    clearLogContext()
    yield
    clearLogContext()


def test_dev_formatter_shows_component_and_operation():
    with logContext(componentName="hello", operation="package"):
        line = DevFormatter().format(_record())
    assert line == "INFO: [ocpack.test] hello [hello/package]"
    assert DevFormatter().format(_record()) == "INFO: [ocpack.test] hello"


def test_json_formatter_is_one_line_with_context():
    setLogContext(componentName="hello")
    payload = json.loads(JsonFormatter().format(_record("msg")))
    assert payload["msg"] == "msg"
    assert payload["level"] == "info"
    assert payload["ctx"] == {"componentName": "hello"}


def test_log_context_nests_and_restores():
    with logContext(operation="outer"):
        with logContext(componentName="inner"):
            assert getLogContext() == {"operation": "outer", "componentName": "inner"}
        assert getLogContext() == {"operation": "outer"}
    assert not getLogContext()


def test_log_context_is_per_thread():
    seen = []
    setLogContext(componentName="main")
    thread = threading.Thread(target=lambda: seen.append(getLogContext()))
    thread.start()
    thread.join()
    assert seen == [None]


def test_configure_logging_with_file(tmp_path):
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    logFile = tmp_path / "logs" / "ocpack.log"
    try:
        configureLogging(devMode=False, logFile=logFile)
        with logContext(componentName="hello", operation="package"):
            logging.getLogger("ocpack.test").info("written")
        assert root.level == logging.INFO
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = handlers
        root.setLevel(level)

    payload = json.loads(logFile.read_text(encoding="utf-8").splitlines()[-1])
    assert payload["msg"] == "written"
    assert payload["ctx"]["operation"] == "package"
