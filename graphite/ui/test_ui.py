import os
import unittest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtTest import QTest
from PySide6.QtWidgets import QApplication

from graphite.canvas.canvas import CanvasModel, RenderEngine
from graphite.ui.ui import MainWindow, READY_MESSAGE


class TestStatusBar(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = QApplication.instance() or QApplication([])

    def setUp(self):
        model = CanvasModel(width=64, height=48)
        self.window = MainWindow(model, RenderEngine(model))

    def tearDown(self):
        self.window.close()

    def message(self):
        return self.window.status_bar.currentMessage()

    def test_flash_returns_to_ready_message(self):
        self.window.show_ready()
        self.window.flash("Style changed", 20)
        self.assertEqual(self.message(), "Style changed")

        QTest.qWait(200)
        self.assertEqual(self.message(), READY_MESSAGE)

    def test_newer_flash_restarts_timeout(self):
        self.window.show_ready()
        self.window.flash("Live audio enabled", 20)
        self.window.flash("Style changed", 5000)

        QTest.qWait(100)
        self.assertEqual(self.message(), "Style changed")

    def test_flash_before_tracking_clears(self):
        self.window.flash("Style changed", 20)
        QTest.qWait(200)
        self.assertEqual(self.message(), "")

    def test_plain_status_cancels_pending_restore(self):
        self.window.show_ready()
        self.window.flash("Style changed", 20)
        self.window.show_status("Recording audio...")

        QTest.qWait(200)
        self.assertEqual(self.message(), "Recording audio...")


if __name__ == '__main__':
    unittest.main()
