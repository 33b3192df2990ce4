"""Tests for pulse.cancel -- the shared cancellation token."""

import asyncio
import time
import unittest

from pulse.cancel import CancelToken, OperationCancelled


class TestCancelToken(unittest.IsolatedAsyncioTestCase):
    async def test_guard_returns_result(self):
        token = CancelToken()

        async def _work():
            await asyncio.sleep(0)
            return 42

        self.assertEqual(await token.guard(_work()), 42)

    async def test_guard_propagates_errors(self):
        token = CancelToken()

        async def _boom():
            raise OSError("reset")

        with self.assertRaises(OSError):
            await token.guard(_boom())

    async def test_cancel_aborts_in_flight_work(self):
        token = CancelToken()
        finished = []

        async def _slow():
            try:
                await asyncio.sleep(10)
            finally:
                finished.append(True)

        asyncio.get_running_loop().call_later(0.05, token.cancel)
        t0 = time.perf_counter()
        with self.assertRaises(OperationCancelled):
            await token.guard(_slow())
        self.assertLess(time.perf_counter() - t0, 2.0)
        # the wrapped task was cancelled and awaited, not left running
        self.assertEqual(finished, [True])

    async def test_guard_after_cancel_never_runs_work(self):
        token = CancelToken()
        token.cancel()
        started = []

        async def _work():
            started.append(True)

        with self.assertRaises(OperationCancelled):
            await token.guard(_work())
        self.assertTrue(token.cancelled)
        self.assertEqual(started, [])

    async def test_sleep_runs_full_duration(self):
        token = CancelToken()
        self.assertFalse(await token.sleep(0.01))

    async def test_sleep_interrupted(self):
        token = CancelToken()
        asyncio.get_running_loop().call_later(0.02, token.cancel)
        t0 = time.perf_counter()
        self.assertTrue(await token.sleep(10))
        self.assertLess(time.perf_counter() - t0, 2.0)

    async def test_zero_sleep(self):
        token = CancelToken()
        self.assertFalse(await token.sleep(0))
        token.cancel()
        self.assertTrue(await token.sleep(0))


if __name__ == "__main__":
    unittest.main()
