from __future__ import annotations

import os
import platform
import shutil
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class HealthService:
    cfg: Dict[str, Any]

    def get_health_summary(self) -> Dict[str, Any]:
        classifier = self.cfg.get("classifier", {}) or {}
        model_path = classifier.get("model_path")
        return {
            "timestamp": time.time(),
            "platform": platform.platform(),
            "python": platform.python_version(),
            "cwd": os.getcwd(),
            "model_path": model_path,
            "model_present": bool(model_path) and os.path.exists(model_path),
            "labels_path": classifier.get("labels_path"),
            "log_path": self.cfg.get("log_path"),
        }

    @staticmethod
    def disk_usage(path: Optional[str] = None) -> Dict[str, Any]:
        """
        Lightweight disk stats for the photo directory.
        """
        target = path or "."
        while target and not os.path.exists(target):
            parent = os.path.dirname(target)
            if parent == target:
                break
            target = parent
        try:
            usage = shutil.disk_usage(target or ".")
        except OSError:
            return {
                "total_bytes": None,
                "used_bytes": None,
                "free_bytes": None,
                "pct_free": None,
                "error": "disk_usage_failed",
            }
        used = usage.total - usage.free
        pct_free = (usage.free / usage.total * 100) if usage.total else None
        return {
            "total_bytes": usage.total,
            "used_bytes": used,
            "free_bytes": usage.free,
            "pct_free": pct_free,
        }
