from __future__ import annotations

import logging

from fastapi import FastAPI

from ditl import server_runner


def test_run_server_prepares_database_and_logs_location(db_path, monkeypatch, caplog):
    calls = {}

    def fake_run(app, host, port, log_level):
        calls.update(app=app, host=host, port=port, log_level=log_level)

    monkeypatch.setattr(server_runner.uvicorn, "run", fake_run)
    caplog.set_level(logging.INFO, logger="ditl.server_runner")

    server_runner.run_server(db_path=db_path, port=9123)

    assert db_path.exists()
    assert isinstance(calls["app"], FastAPI)
    assert calls["app"].state.store.db_path == db_path
    assert (calls["host"], calls["port"]) == ("127.0.0.1", 9123)
    assert "http://127.0.0.1:9123" in caplog.text
    assert str(db_path) in caplog.text
