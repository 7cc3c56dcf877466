import os
from pathlib import Path

# -----------------------------
# Base paths
# -----------------------------
BASE_DIR = Path(__file__).resolve().parent.parent  # project root

# -----------------------------
# Disk images
# -----------------------------
# per-VM disks: <name>.qcow2 (root) and <name>-data.qcow2 (data)
VM_STORAGE_PATH = Path(os.getenv("VM_STORAGE_PATH", "/var/lib/libvirt/images"))

QEMU_IMG_BINARY = os.getenv("QEMU_IMG_BINARY", "qemu-img")
DISK_FORMAT = "qcow2"

# -----------------------------
# Domain descriptor template
# -----------------------------
VM_TEMPLATE_PATH = Path(
    os.getenv("VM_TEMPLATE_PATH", str(BASE_DIR / "config" / "vm-template.xml.j2"))
)

# -----------------------------
# Logging
# -----------------------------
LOG_DIR = Path(os.getenv("LOG_DIR", str(BASE_DIR / "log")))
LOG_DIR.mkdir(parents=True, exist_ok=True)

LOG_FILE = LOG_DIR / "vm-manager.log"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# -----------------------------
# Hypervisor / libvirt
# -----------------------------
HYPERVISOR_TYPE = os.getenv("HYPERVISOR_TYPE", "qemu").lower()

# common examples:
#   qemu:///system                  (KVM/QEMU on host)
#   qemu:///session                 (unprivileged QEMU)
#   qemu+ssh://root@kvm-host/system (remote KVM)
LIBVIRT_URI = os.getenv("LIBVIRT_URI", "qemu:///system")

# <domain type='...'>, "qemu" for hosts without KVM acceleration
VM_DOMAIN_TYPE = os.getenv("VM_DOMAIN_TYPE", "kvm")
VM_NETWORK = os.getenv("VM_NETWORK", "default")

# -----------------------------
# HTTP API
# -----------------------------
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8080"))

# -----------------------------
# Metrics / monitoring
# -----------------------------
METRICS_ENABLED = os.getenv("METRICS_ENABLED", "true").lower() == "true"
METRICS_REFRESH_INTERVAL = int(os.getenv("METRICS_REFRESH_INTERVAL", "5"))
