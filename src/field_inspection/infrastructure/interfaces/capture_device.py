"""Abstract interface for the camera and microphone."""

from abc import ABC, abstractmethod

from field_inspection.domain.models import CapturedMedia


class RecordingHandle(ABC):
    """An in-progress audio capture returned by the device."""

    @abstractmethod
    def stop(self) -> CapturedMedia:
        """
        Finalizes the capture.

        Returns:
            The temporary file holding the recorded audio.

        Raises:
            CaptureDeviceError: If the device cannot finalize the recording.
        """
        pass


class CaptureDevice(ABC):
    """Abstract base class for device capture backends."""

    @abstractmethod
    def request_microphone_permission(self) -> bool:
        """Returns True if microphone access is granted."""
        pass

    @abstractmethod
    def request_camera_permission(self) -> bool:
        """Returns True if camera access is granted."""
        pass

    @abstractmethod
    def start_recording(self) -> RecordingHandle:
        """
        Begins capturing audio.

        Raises:
            CaptureDeviceError: If the microphone cannot be opened.
        """
        pass

    @abstractmethod
    def capture_photo(self) -> CapturedMedia:
        """
        Takes a picture.

        Returns:
            The temporary file holding the photo.

        Raises:
            CaptureDeviceError: If the camera fails.
        """
        pass
