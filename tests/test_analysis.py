"""
Tests for keep-only-latest frame analysis.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

from pipeline.analysis import ImageAnalysis
from conftest import ManualExecutor, frame_data, wait_for


class TestImageAnalysis:
    """Backpressure behavior with a manually driven worker."""

    def test_idle_dispatches_immediately(self):
        executor = ManualExecutor()
        seen = []
        analysis = ImageAnalysis(executor, lambda f: seen.append(f.frame_index))

        assert analysis.submit(frame_data(index=1)) is True
        assert analysis.busy
        assert len(executor.tasks) == 1

        executor.run_all()
        assert seen == [1]
        assert not analysis.busy
        assert analysis.stats.analyzed == 1

    def test_busy_keeps_only_latest(self):
        executor = ManualExecutor()
        seen = []
        analysis = ImageAnalysis(executor, lambda f: seen.append(f.frame_index))

        analysis.submit(frame_data(index=1))
        assert analysis.submit(frame_data(index=2)) is False
        assert analysis.submit(frame_data(index=3)) is False
        assert analysis.submit(frame_data(index=4)) is False

        # Only the in-flight frame is queued on the executor
        assert len(executor.tasks) == 1

        executor.run_all()
        assert seen == [1, 4]
        assert analysis.stats.submitted == 4
        assert analysis.stats.dropped == 2
        assert analysis.stats.analyzed == 2

    def test_at_most_one_in_flight(self):
        executor = ManualExecutor()
        analysis = ImageAnalysis(executor, lambda f: None)

        analysis.submit(frame_data(index=1))
        analysis.submit(frame_data(index=2))
        executor.run_next()

        # The pending frame is dispatched only after the first finishes
        assert len(executor.tasks) == 1
        executor.run_next()
        assert executor.tasks == []
        assert not analysis.busy

    def test_analyzer_failure_does_not_stall(self, caplog):
        executor = ManualExecutor()
        seen = []

        def analyzer(frame):
            if frame.frame_index == 1:
                raise RuntimeError("boom")
            seen.append(frame.frame_index)

        analysis = ImageAnalysis(executor, analyzer)
        analysis.submit(frame_data(index=1))
        analysis.submit(frame_data(index=2))
        executor.run_all()

        assert seen == [2]
        assert analysis.stats.failed == 1
        assert analysis.stats.analyzed == 1
        assert "Frame analysis failed" in caplog.text

    def test_shut_down_executor_discards_frame(self):
        executor = ManualExecutor()
        executor.shutdown()
        analysis = ImageAnalysis(executor, lambda f: None)

        analysis.submit(frame_data(index=1))
        assert not analysis.busy
        assert analysis.stats.dropped == 1

    def test_real_worker_thread(self):
        release = threading.Event()
        seen = []

        def analyzer(frame):
            release.wait(timeout=5)
            seen.append(frame.frame_index)

        with ThreadPoolExecutor(max_workers=1) as executor:
            analysis = ImageAnalysis(executor, analyzer)
            for i in range(1, 6):
                analysis.submit(frame_data(index=i))
            release.set()
            assert wait_for(lambda: not analysis.busy)

        assert seen == [1, 5]
        assert analysis.stats.dropped == 3
