import subprocess
from pathlib import Path
from typing import Optional

from config.settings import DISK_FORMAT, QEMU_IMG_BINARY, VM_STORAGE_PATH
from core.logger import log_event


class DiskCreationError(RuntimeError):
    pass


class DiskManager:
    """
    Thin wrapper around `qemu-img create` for per-VM disk files.

    Paths are derived from the VM name inside VM_STORAGE_PATH. Nothing here
    checks for an existing file or removes files on failure.
    """

    def __init__(
        self,
        storage_path: Optional[Path] = None,
        qemu_img: str = QEMU_IMG_BINARY,
        disk_format: str = DISK_FORMAT,
    ) -> None:
        self.storage_path = Path(storage_path or VM_STORAGE_PATH)
        self.qemu_img = qemu_img
        self.disk_format = disk_format

    def root_disk_path(self, name: str) -> str:
        return str(self.storage_path / f"{name}.{self.disk_format}")

    def data_disk_path(self, name: str) -> str:
        return str(self.storage_path / f"{name}-data.{self.disk_format}")

    def create_disk(self, path: str, size_gb: Optional[int]) -> None:
        if not size_gb or size_gb <= 0:
            raise DiskCreationError("disk size must be > 0 to create a new disk")

        size_arg = f"{size_gb}G"
        cmd = [self.qemu_img, "create", "-f", self.disk_format, path, size_arg]
        log_event(f"[disk] Creating disk {path}: {' '.join(cmd)}")

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as e:
            raise DiskCreationError(f"{self.qemu_img} not found: {e}") from e

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            stdout = (result.stdout or "").strip()
            combined = "\n".join(part for part in [stderr, stdout] if part) or "unknown error"
            raise DiskCreationError(
                f"qemu-img create failed (exit {result.returncode}): {combined}"
            )

        log_event(f"[disk] Created disk {path} ({size_arg})")
