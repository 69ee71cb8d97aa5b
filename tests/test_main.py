import runpy
from pathlib import Path

import uvicorn

MAIN = Path(__file__).resolve().parent.parent / "main.py"


def test_running_main_starts_uvicorn(monkeypatch):
    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    monkeypatch.setenv("HOST", "0.0.0.0")
    monkeypatch.setenv("PORT", "9000")

    runpy.run_path(str(MAIN), run_name="__main__")

    app, kwargs = calls[0]
    assert app.title == "chatspend"
    assert kwargs["host"] == "0.0.0.0"
    assert kwargs["port"] == 9000
