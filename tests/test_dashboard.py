"""Tests for ui.dashboard -- phase progress bars and plain-text output."""

import io
import unittest

from rich.console import Console

from pulse.models import Phase, ProgressEvent, TestResult
from ui.dashboard import PhaseProgressDisplay, format_simple


def _display():
    return PhaseProgressDisplay(Console(file=io.StringIO(), width=120))


class TestPhaseProgressDisplay(unittest.TestCase):
    def test_one_bar_per_phase(self):
        display = _display()
        display(ProgressEvent(Phase.PING, 0.0))
        display(ProgressEvent(Phase.PING, 60.0))
        display(ProgressEvent(Phase.DOWNLOAD, 0.0, 12.5))
        display(ProgressEvent(Phase.DOWNLOAD, 40.0, 30.0))

        tasks = display.progress.tasks
        self.assertEqual([t.description for t in tasks], ["Ping", "Download"])
        # previous phase frozen at 100%
        self.assertEqual(tasks[0].completed, 100)
        self.assertEqual(tasks[1].completed, 40.0)
        self.assertEqual(tasks[1].fields["speed"], "30.0 Mbps")
        display.stop()

    def test_ping_shows_no_speed(self):
        display = _display()
        display(ProgressEvent(Phase.PING, 50.0, 99.0))
        self.assertEqual(display.progress.tasks[0].fields["speed"], "")
        display.stop()

    def test_zero_speed_placeholder(self):
        display = _display()
        display(ProgressEvent(Phase.UPLOAD, 10.0, 0.0))
        self.assertEqual(display.progress.tasks[0].fields["speed"], "...")
        display.stop()

    def test_complete_finishes_current_bar(self):
        display = _display()
        display(ProgressEvent(Phase.UPLOAD, 70.0, 5.0))
        display(ProgressEvent(Phase.COMPLETE, 100.0))

        self.assertFalse(display._running)
        self.assertEqual(display.progress.tasks[0].completed, 100)

    def test_idle_leaves_bar_where_it_stopped(self):
        display = _display()
        display(ProgressEvent(Phase.DOWNLOAD, 30.0, 5.0))
        display(ProgressEvent(Phase.IDLE))

        self.assertFalse(display._running)
        self.assertEqual(display.progress.tasks[0].completed, 30.0)

    def test_stop_without_start(self):
        display = _display()
        display.stop()
        self.assertEqual(display.progress.tasks, [])


class TestFormatSimple(unittest.TestCase):
    def test_basic(self):
        text = format_simple(TestResult(download_speed=48.9, upload_speed=12.34, ping=22, jitter=2))
        self.assertEqual(
            text.splitlines(),
            ["Ping: 22 ms (jitter: 2 ms)", "Download: 48.9 Mbps", "Upload: 12.3 Mbps"],
        )

    def test_packet_loss_line(self):
        text = format_simple(TestResult(packet_loss=20.0))
        self.assertIn("Packet Loss: 20.0%", text)


if __name__ == "__main__":
    unittest.main()
