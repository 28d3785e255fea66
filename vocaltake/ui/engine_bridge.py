from PyQt6.QtCore import QObject, QTimer, pyqtSignal

from vocaltake.core.config import AUDIO_CONFIG
from vocaltake.core.timeline import TimelineEngine
from vocaltake.utils.logger import logger


class EngineBridge(QObject):
    """
    Exposes a TimelineEngine to Qt widgets.
    Engine observers become signals, and a QTimer on the GUI thread is the
    engine's cooperative scheduler. It ticks from construction until
    shutdown(), so commands posted while idle (finished async loads,
    transport requests from other threads) are applied too.
    """
    positionChanged = pyqtSignal(float)
    stateChanged = pyqtSignal(str)
    segmentsChanged = pyqtSignal(int)
    errorOccurred = pyqtSignal(str, str)  # (code, message)

    def __init__(self, source=None, parent=None, interval_ms=AUDIO_CONFIG.tick_interval_ms, **engine_kwargs):
        super().__init__(parent)
        self.engine = TimelineEngine(
            source,
            on_position_changed=self.positionChanged.emit,
            on_state_changed=lambda state: self.stateChanged.emit(state.name.lower()),
            on_segments_changed=lambda segments: self.segmentsChanged.emit(len(segments)),
            on_error=lambda error: self.errorOccurred.emit(error.code, error.message),
            **engine_kwargs,
        )
        self.timer = QTimer(self)
        self.timer.setInterval(interval_ms)
        self.timer.timeout.connect(self.engine.tick)
        self.timer.start()

    def shutdown(self):
        """Stops the timer and releases audio devices."""
        self.timer.stop()
        self.engine.cleanup()
        logger.info("Engine bridge shut down")
