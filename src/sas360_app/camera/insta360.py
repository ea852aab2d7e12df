"""Insta360 camera integration placeholder.

The vendor SDK package ships without the ``NvEffectSdkCore`` framework it
links against, so the integration stays disabled until the complete SDK is
obtained from Insta360 developer support. The manager below keeps the same
surface the capture screens bind to and reports the SDK as unavailable.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import numpy as np
from loguru import logger

SUPPORT_URL = "https://www.insta360.com/developer/home"


class CameraSdkUnavailableError(RuntimeError):
    """Raised when an operation needs the vendor SDK."""


class Insta360ConnectionState(Enum):
    DISCONNECTED = "disconnected"
    DETECTING = "detecting"
    CONNECTED = "connected"
    FAILED = "failed"


@dataclass(slots=True, frozen=True)
class SdkStatus:
    """Availability of the vendor SDK."""

    enabled: bool
    missing_component: Optional[str]
    detail: str
    support_url: str = SUPPORT_URL


SDK_STATUS = SdkStatus(
    enabled=False,
    missing_component="NvEffectSdkCore",
    detail="NvEffectSdkCore.framework not included in SDK; request complete SDK from developer support",
)


@dataclass(slots=True)
class Insta360CameraManager:
    """Connection manager stand-in used while the SDK is disabled."""

    sdk: SdkStatus = SDK_STATUS
    connection_state: Insta360ConnectionState = Insta360ConnectionState.DISCONNECTED
    is_capturing: bool = False
    captured_photo: Optional[np.ndarray] = None
    error_message: str = "SDK not available"
    status_log: list[str] = field(default_factory=list)

    @property
    def is_connected(self) -> bool:
        return False

    @property
    def is_detecting(self) -> bool:
        return False

    def start_detecting(self) -> None:
        self._log(f"Camera detection unavailable: {self.sdk.detail}")
        self.connection_state = Insta360ConnectionState.FAILED

    def stop_detecting(self) -> None:
        self.connection_state = Insta360ConnectionState.DISCONNECTED

    def disconnect(self) -> None:
        self.connection_state = Insta360ConnectionState.DISCONNECTED
        self.is_capturing = False

    def capture_photo(self) -> np.ndarray:
        self._log("Capture requested without SDK")
        raise CameraSdkUnavailableError(
            f"Insta360 SDK is disabled (missing {self.sdk.missing_component}); see {self.sdk.support_url}"
        )

    def _log(self, message: str) -> None:
        logger.warning("Insta360: {}", message)
        self.status_log.append(message)
