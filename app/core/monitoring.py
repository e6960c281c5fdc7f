"""
Health check utilities backed by psutil
"""

import os
import time
from datetime import datetime
from typing import Any, Dict

import psutil
from pydantic import BaseModel

from app.core.config import settings


class SystemHealth(BaseModel):
    """System health status model"""

    status: str
    timestamp: datetime
    uptime: float
    memory_usage: Dict[str, Any]
    disk_usage: Dict[str, Any]
    cpu_usage: float
    storage: Dict[str, Any]


class HealthChecker:
    """Health checking with system metrics"""

    def __init__(self):
        self.start_time = time.time()

    def get_memory_info(self) -> Dict[str, Any]:
        memory = psutil.virtual_memory()
        return {
            "total": memory.total,
            "available": memory.available,
            "used": memory.used,
            "percentage": memory.percent,
        }

    def get_disk_info(self) -> Dict[str, Any]:
        disk = psutil.disk_usage("/")
        return {
            "total": disk.total,
            "used": disk.used,
            "free": disk.free,
            "percentage": (disk.used / disk.total) * 100,
        }

    def get_cpu_info(self) -> float:
        """CPU usage since the previous call (non-blocking)"""
        return psutil.cpu_percent(interval=None)

    def check_storage(self) -> Dict[str, Any]:
        """Describe the configured blob storage backend"""
        backend = settings.storage_backend.lower()
        if backend != "local":
            return {
                "backend": backend,
                "configured": bool(settings.aws_s3_bucket and settings.aws_s3_region),
            }

        path = settings.upload_dir
        info: Dict[str, Any] = {"backend": "local", "path": path, "writable": False}
        if os.path.isdir(path):
            free_gb = psutil.disk_usage(path).free / (1024**3)
            info["free_space_gb"] = round(free_gb, 2)
            info["writable"] = os.access(path, os.W_OK)
        return info

    def get_system_health(self) -> SystemHealth:
        uptime = time.time() - self.start_time
        memory = self.get_memory_info()
        disk = self.get_disk_info()
        cpu = self.get_cpu_info()

        status = "healthy"
        if memory["percentage"] > 90 or disk["percentage"] > 95 or cpu > 95:
            status = "unhealthy"
        elif memory["percentage"] > 80 or disk["percentage"] > 85 or cpu > 80:
            status = "warning"

        return SystemHealth(
            status=status,
            timestamp=datetime.now(),
            uptime=uptime,
            memory_usage=memory,
            disk_usage=disk,
            cpu_usage=cpu,
            storage=self.check_storage(),
        )


# Global health checker instance
health_checker = HealthChecker()
