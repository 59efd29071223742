"""
Camera access checks.

Before the camera is bound, the coordinator asks a PermissionGate whether
the process may use the device. If access is denied, a rationale is shown
(logged) and the check is retried a bounded number of times, giving the
user a chance to fix device permissions or close another app holding it.
"""

from __future__ import annotations

import logging
import os
import sys
import time
from typing import Callable, Optional, Union

DeviceId = Union[int, str]

CAMERA_RATIONALE = (
    "Camera access is required to classify frames and capture photos. "
    "Grant access to the video device (e.g. add your user to the 'video' group) and retry."
)


def has_camera_access(device_id: DeviceId) -> bool:
    """
    Best-effort check that the process can open the camera device.

    On Linux a local device index maps to /dev/video<N>, which must be
    readable and writable. Files and stream URLs are not gated here; the
    camera source reports those failures when opening.
    """
    if not isinstance(device_id, int):
        return True
    if not sys.platform.startswith("linux"):
        return True
    node = f"/dev/video{device_id}"
    return os.path.exists(node) and os.access(node, os.R_OK | os.W_OK)


class PermissionGate:
    """
    Checks camera access with a rationale and bounded retry.

    Args:
        device_id: Camera device the coordinator will open.
        checker: Returns True if access is granted (defaults to has_camera_access).
        on_rationale: Called with the rationale text on each denial.
        retries: Extra checks after the first denial.
        retry_delay_s: Seconds to wait between checks.
    """

    def __init__(
        self,
        device_id: DeviceId,
        checker: Optional[Callable[[DeviceId], bool]] = None,
        on_rationale: Optional[Callable[[str], None]] = None,
        retries: int = 1,
        retry_delay_s: float = 2.0,
    ):
        self.device_id = device_id
        self._checker = checker or has_camera_access
        self._on_rationale = on_rationale or self._log_rationale
        self.retries = max(0, int(retries))
        self.retry_delay_s = retry_delay_s
        self.granted = False

    @staticmethod
    def _log_rationale(text: str) -> None:
        logging.warning(f"Camera permission needed: {text}")

    def request(self) -> bool:
        """Return True once access is granted, False if all attempts were denied."""
        attempts = self.retries + 1
        for attempt in range(attempts):
            if self._checker(self.device_id):
                if attempt > 0:
                    logging.info("Camera permission granted")
                self.granted = True
                return True

            self._on_rationale(CAMERA_RATIONALE)
            if attempt < attempts - 1 and self.retry_delay_s > 0:
                time.sleep(self.retry_delay_s)

        logging.error(f"Camera permission denied for device {self.device_id}")
        self.granted = False
        return False
