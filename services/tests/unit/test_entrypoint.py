from __future__ import annotations

from typing import Any

import pytest

from latexai.services import __main__ as entrypoint


def test_main_runs_uvicorn_with_app_factory(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[tuple[str, dict[str, Any]]] = []
    monkeypatch.setattr(entrypoint, "configure_logging", lambda: None)
    monkeypatch.setattr(
        entrypoint.uvicorn, "run", lambda target, **kwargs: calls.append((target, kwargs))
    )

    entrypoint.main(["--port", "9001"])

    target, kwargs = calls[0]
    assert target == "latexai.services.app:create_app"
    assert kwargs["factory"] is True
    assert kwargs["host"] == entrypoint.DEFAULT_HOST
    assert kwargs["port"] == 9001
    assert kwargs["log_config"] is entrypoint.LOGGING_CONFIG


def test_main_rejects_out_of_range_port(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(entrypoint.uvicorn, "run", lambda *args, **kwargs: None)

    with pytest.raises(SystemExit):
        entrypoint.main(["--port", "70000"])
