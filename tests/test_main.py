import asyncio

import main


def test_main_runs_batch_without_prompting(monkeypatch):
    calls = []

    async def run_claim_workers():
        calls.append(1)
        return 1, 0

    def no_input(*args):
        raise AssertionError("main must not prompt")

    monkeypatch.setattr(main, "run_claim_workers", run_claim_workers)
    monkeypatch.setattr("builtins.input", no_input)

    asyncio.run(main.main())

    assert calls == [1]


def test_main_logs_configuration_error(monkeypatch):
    async def run_claim_workers():
        raise ValueError("Wallet #1: invalid private key format, must be 64 hex chars")

    monkeypatch.setattr(main, "run_claim_workers", run_claim_workers)

    asyncio.run(main.main())
