import threading
import time
from typing import Any, Dict, Optional

import numpy as np


class SharedState:
    """
    Singleton class to share state between the UI loop (main thread)
    and the FastAPI web server thread.
    """
    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(SharedState, cls).__new__(cls)
                    cls._instance.reset()
        return cls._instance

    def reset(self) -> None:
        """Forget everything (used at startup and by tests)."""
        self.frame: Optional[np.ndarray] = None
        self.frame_lock = threading.Lock()
        self.coordinator = None
        self.config: Optional[Dict[str, Any]] = None
        self.config_lock = threading.Lock()
        self.system_stats: Dict[str, Any] = {
            "start_time": 0,
            "last_frame_ts": None,
        }

    def set_frame(self, frame_data) -> None:
        """Keep a BGR copy of the latest preview frame for the snapshot endpoint."""
        if frame_data is None:
            return
        with self.frame_lock:
            self.frame = frame_data.to_bgr()
            self.system_stats["last_frame_ts"] = time.time()

    def get_frame(self) -> Optional[np.ndarray]:
        with self.frame_lock:
            if self.frame is None:
                return None
            return self.frame.copy()

    def set_coordinator(self, coordinator) -> None:
        self.coordinator = coordinator

    def set_config(self, config: Dict[str, Any]) -> None:
        with self.config_lock:
            self.config = config

    def get_config_copy(self) -> Optional[Dict[str, Any]]:
        with self.config_lock:
            if self.config is None:
                return None
            return dict(self.config)

    def update_system_stats(self, stats: Dict[str, Any]) -> None:
        self.system_stats.update(stats)

    def get_system_stats_copy(self) -> Dict[str, Any]:
        return dict(self.system_stats)


# Global instance
state = SharedState()
