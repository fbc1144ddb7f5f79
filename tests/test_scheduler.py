import asyncio

from app.scheduler import start_signal_job


def test_scheduler_runs_job_until_cancelled(backend, store):
    async def scenario():
        task = start_signal_job(lambda: backend, interval_sec=0.01)
        for _ in range(200):
            await asyncio.sleep(0.01)
            if store.recent_signals(1):
                break
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    asyncio.run(scenario())
    [rec] = store.recent_signals(1)
    assert rec.strategy.startswith("AI Pick at ")
    assert rec.strategy.endswith("(from scheduled job)")


def test_scheduler_survives_backend_errors(store):
    calls = []

    def broken_backend():
        calls.append(1)
        raise RuntimeError("no store")

    async def scenario():
        task = start_signal_job(broken_backend, interval_sec=0.01)
        while len(calls) < 2:
            await asyncio.sleep(0.01)
        assert not task.done()
        task.cancel()

    asyncio.run(scenario())
