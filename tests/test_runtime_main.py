"""
Tests for the pipeline-engine entry point.
"""

import asyncio
import threading
from pathlib import Path

import httpx

from engine.runtime import main as runtime_main
from service.adapters.validator_client import ValidatorClient

CONFIG_DIR = Path(__file__).parent.parent / "config"


class TestMain:
    """Tests for engine.runtime.main.main()."""

    def test_evaluates_and_submits_off_loop_thread(self, monkeypatch, capsys):
        """Submission runs in a worker thread so the loop is never blocked."""
        request_threads = []

        def handler(request: httpx.Request) -> httpx.Response:
            request_threads.append(threading.current_thread())
            return httpx.Response(200, json={"num_nodes": 5, "num_edges": 5, "is_dag": True})

        monkeypatch.setenv("CONFIG_DIR", str(CONFIG_DIR))
        monkeypatch.setenv("SUBMIT", "parse")
        monkeypatch.setattr(
            runtime_main,
            "ValidatorClient",
            lambda config: ValidatorClient(config, transport=httpx.MockTransport(handler)),
        )

        assert asyncio.run(runtime_main.main("summarize")) == 0

        assert len(request_threads) == 1
        assert request_threads[0] is not threading.main_thread()
        out = capsys.readouterr().out
        assert "text-1 (text):" in out
        assert "Your pipeline is valid!" in out

    def test_unknown_pipeline(self, monkeypatch):
        """A missing definition exits with status 1."""
        monkeypatch.setenv("CONFIG_DIR", str(CONFIG_DIR))
        monkeypatch.delenv("SUBMIT", raising=False)
        assert asyncio.run(runtime_main.main("does-not-exist")) == 1
