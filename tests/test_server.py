from backoffice import server


def test_run_starts_uvicorn_from_environment(monkeypatch):
    calls = []
    monkeypatch.setattr(server.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.delenv("HOST", raising=False)
    monkeypatch.setenv("PORT", "9100")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    server.run()

    assert calls == [("backoffice.main:app", {"host": "0.0.0.0", "port": 9100, "log_level": "debug"})]
