import pytest

from sas360_app.camera.insta360 import (
    SDK_STATUS,
    CameraSdkUnavailableError,
    Insta360CameraManager,
    Insta360ConnectionState,
)


def test_sdk_reported_disabled():
    assert not SDK_STATUS.enabled
    assert SDK_STATUS.missing_component == "NvEffectSdkCore"
    assert SDK_STATUS.support_url.startswith("https://")


def test_detection_fails_without_sdk():
    manager = Insta360CameraManager()
    assert manager.connection_state is Insta360ConnectionState.DISCONNECTED
    assert manager.error_message == "SDK not available"

    manager.start_detecting()

    assert manager.connection_state is Insta360ConnectionState.FAILED
    assert not manager.is_connected
    assert not manager.is_detecting
    assert manager.status_log

    manager.stop_detecting()
    assert manager.connection_state is Insta360ConnectionState.DISCONNECTED


def test_capture_photo_raises():
    manager = Insta360CameraManager()
    with pytest.raises(CameraSdkUnavailableError, match="NvEffectSdkCore"):
        manager.capture_photo()
    assert manager.captured_photo is None
    manager.disconnect()
    assert manager.connection_state is Insta360ConnectionState.DISCONNECTED
