"""Recording session: the elapsed-time authority for photo correlation."""

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from field_inspection.domain.clock import Clock, MonotonicClock
from field_inspection.domain.models import RecordingState
from field_inspection.exceptions import (
    CaptureDeviceError,
    DeviceBusyError,
    NoActiveRecordingError,
    PermissionDeniedError,
)
from field_inspection.infrastructure.interfaces.capture_device import (
    CaptureDevice,
    RecordingHandle,
)
from field_inspection.logging import setup_logging

logger = setup_logging()


class RecordingSession:
    """
    Owns the lifecycle of one continuous audio capture.

    Duration is recomputed from the injected clock on every tick. A single
    lock serializes ticks, starts, stops and photo stamping, so a photo never
    observes a duration mid-update.
    """

    def __init__(self, device: CaptureDevice, clock: Clock | None = None):
        self._device = device
        self._clock = clock or MonotonicClock()
        self._lock = threading.RLock()
        self._handle: RecordingHandle | None = None
        self._state = RecordingState()

    @property
    def state(self) -> RecordingState:
        with self._lock:
            return self._state

    @property
    def duration(self) -> int:
        with self._lock:
            return self._state.duration

    def start(self) -> RecordingState:
        """
        Requests microphone access and begins recording.

        Raises:
            DeviceBusyError: If a recording is already active.
            PermissionDeniedError: If microphone access is refused.
            CaptureDeviceError: If the device cannot start recording.
        """
        with self._lock:
            if self._handle is not None:
                raise DeviceBusyError()

            if not self._device.request_microphone_permission():
                logger.warning("Microphone permission denied")
                raise PermissionDeniedError("microphone")

            try:
                self._handle = self._device.start_recording()
            except CaptureDeviceError:
                raise
            except Exception as e:
                logger.exception("Failed to start recording")
                raise CaptureDeviceError("start_recording", e) from e

            self._state = RecordingState(
                is_recording=True, start_time=self._clock.now_ms(), duration=0
            )
            logger.info(
                "Recording started", extra={"start_time": self._state.start_time}
            )
            return self._state

    def tick(self) -> int:
        """Recomputes the elapsed duration and returns it."""
        with self._lock:
            if not self._state.is_recording:
                return self._state.duration
            elapsed = self._clock.now_ms() - self._state.start_time
            duration = max(elapsed, self._state.duration)
            self._state = self._state.model_copy(update={"duration": duration})
            return duration

    @contextmanager
    def stamp(self) -> Iterator[int]:
        """
        Yields the current duration and holds it steady until the block exits.

        Wrap the read-and-persist of a photo in this block so the audio
        timestamp and the stored record cannot straddle a tick.
        """
        with self._lock:
            yield self._state.duration

    def stop(self) -> str:
        """
        Finalizes the recording and returns the captured audio file.

        The session returns to the not-recording state whether or not the
        device finalizes cleanly.

        Raises:
            NoActiveRecordingError: If no recording is active.
            CaptureDeviceError: If the device fails to finalize.
        """
        with self._lock:
            handle = self._handle
            if handle is None:
                raise NoActiveRecordingError()

            duration = self.tick()
            try:
                media = handle.stop()
            except CaptureDeviceError:
                logger.exception("Failed to stop recording")
                raise
            except Exception as e:
                logger.exception("Failed to stop recording")
                raise CaptureDeviceError("stop", e) from e
            finally:
                self._handle = None
                self._state = RecordingState()

        logger.info(
            "Recording stopped",
            extra={"local_uri": media.local_uri, "duration": duration},
        )
        return media.local_uri

    def reset(self) -> None:
        """Tears down any active recording without raising."""
        with self._lock:
            handle = self._handle
            self._handle = None
            self._state = RecordingState()

        if handle is None:
            return
        try:
            handle.stop()
        except Exception:
            logger.exception("Failed to stop recording during reset")
        logger.info("Recording reset")


class Ticker:
    """Advances a recording session's duration on a fixed interval."""

    def __init__(self, session: RecordingSession, interval_seconds: float = 1.0):
        self._session = session
        self._interval_seconds = interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run, name="recording-ticker", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            if self._thread.is_alive():
                logger.warning("Ticker thread did not terminate cleanly")
            self._thread = None

    def _run(self) -> None:
        while not self._stop_event.wait(self._interval_seconds):
            self._session.tick()
