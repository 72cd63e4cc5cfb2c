from __future__ import annotations

import asyncio
import threading
import time
import unittest

from photo_search import AsyncSingleFlightProvider, ModelWorker, SingleFlightProvider


class SingleFlightProviderTests(unittest.TestCase):
    def test_concurrent_callers_share_one_construction(self) -> None:
        calls = 0
        calls_lock = threading.Lock()

        def factory() -> object:
            nonlocal calls
            with calls_lock:
                calls += 1
            time.sleep(0.05)
            return object()

        provider = SingleFlightProvider(factory, name="model")
        results: list[object] = []
        results_lock = threading.Lock()

        def worker() -> None:
            value = provider.get()
            with results_lock:
                results.append(value)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(calls, 1)
        self.assertEqual(len(results), 8)
        self.assertTrue(all(value is results[0] for value in results))
        self.assertTrue(provider.loaded)

    def test_failure_is_not_cached(self) -> None:
        attempts: list[int] = []

        def factory() -> str:
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("weights missing")
            return "model"

        provider = SingleFlightProvider(factory)

        with self.assertRaisesRegex(RuntimeError, "weights missing"):
            provider.get()
        self.assertFalse(provider.loaded)

        self.assertEqual(provider.get(), "model")
        self.assertEqual(provider.get(), "model")
        self.assertEqual(len(attempts), 2)

    def test_preload_builds_in_background(self) -> None:
        provider = SingleFlightProvider(lambda: "model", name="preloaded")

        thread = provider.preload()
        self.assertIsNotNone(thread)
        thread.join(timeout=5)

        self.assertTrue(provider.loaded)
        self.assertIsNone(provider.preload())
        self.assertEqual(provider.get(), "model")

    def test_failed_preload_is_logged_and_retried(self) -> None:
        attempts: list[int] = []

        def factory() -> str:
            attempts.append(1)
            if len(attempts) == 1:
                raise OSError("disk unavailable")
            return "model"

        provider = SingleFlightProvider(factory, name="flaky")

        with self.assertLogs("photo_search.core.providers", level="ERROR"):
            thread = provider.preload()
            thread.join(timeout=5)

        self.assertFalse(provider.loaded)
        self.assertEqual(provider.get(), "model")

    def test_reset_rebuilds_on_next_get(self) -> None:
        counter = iter(range(10))
        provider = SingleFlightProvider(lambda: next(counter))

        self.assertEqual(provider.get(), 0)
        self.assertEqual(provider.get(), 0)
        provider.reset()
        self.assertFalse(provider.loaded)
        self.assertEqual(provider.get(), 1)


class AsyncSingleFlightProviderTests(unittest.IsolatedAsyncioTestCase):
    async def test_concurrent_awaiters_share_one_construction(self) -> None:
        calls = 0

        async def factory() -> object:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            return object()

        provider = AsyncSingleFlightProvider(factory)

        values = await asyncio.gather(*(provider.get() for _ in range(10)))

        self.assertEqual(calls, 1)
        self.assertTrue(all(value is values[0] for value in values))
        self.assertTrue(provider.loaded)

    async def test_sync_factory_runs_in_worker_thread(self) -> None:
        loop_thread = threading.get_ident()
        seen: list[int] = []

        def factory() -> str:
            seen.append(threading.get_ident())
            return "model"

        provider = AsyncSingleFlightProvider(factory)

        self.assertEqual(await provider.get(), "model")
        self.assertNotEqual(seen, [loop_thread])

    async def test_failure_is_not_cached(self) -> None:
        attempts: list[int] = []

        async def factory() -> str:
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("boom")
            return "model"

        provider = AsyncSingleFlightProvider(factory)

        with self.assertRaises(RuntimeError):
            await provider.get()
        self.assertFalse(provider.loaded)
        self.assertEqual(await provider.get(), "model")
        self.assertEqual(len(attempts), 2)


class ModelWorkerTests(unittest.IsolatedAsyncioTestCase):
    async def test_calls_run_on_one_named_thread(self) -> None:
        worker = ModelWorker("clip-test")
        self.addCleanup(worker.shutdown)

        names = [worker.run(lambda: threading.current_thread().name) for _ in range(3)]
        names.append(await worker.arun(lambda: threading.current_thread().name))

        self.assertEqual(len(set(names)), 1)
        self.assertTrue(names[0].startswith("clip-test"))

    async def test_worker_propagates_exceptions(self) -> None:
        worker = ModelWorker()
        self.addCleanup(worker.shutdown)

        def fail() -> None:
            raise ValueError("bad input")

        with self.assertRaises(ValueError):
            worker.run(fail)
        with self.assertRaises(ValueError):
            await worker.arun(fail)

    async def test_submit_passes_arguments(self) -> None:
        worker = ModelWorker()
        self.addCleanup(worker.shutdown)

        future = worker.submit(pow, 2, 5)

        self.assertEqual(future.result(timeout=5), 32)


if __name__ == "__main__":
    unittest.main()
