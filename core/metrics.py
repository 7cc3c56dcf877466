import threading
import time

import psutil
from prometheus_client import Counter, Gauge, Histogram

from config.settings import (
    METRICS_REFRESH_INTERVAL,
    HYPERVISOR_TYPE,
)
from core.logger import log_event

# -----------------------------
# HTTP / API level metrics
# -----------------------------
REQUEST_COUNT = Counter(
    "vm_manager_requests_total",
    "Total HTTP requests to vm-manager",
    ["method", "endpoint"],
)

REQUEST_LATENCY = Histogram(
    "vm_manager_request_latency_seconds",
    "Latency of HTTP requests to vm-manager",
    ["endpoint"],
)


# -----------------------------
# Provisioning metrics
# -----------------------------
VM_CREATED_TOTAL = Counter(
    "vm_created_total",
    "Total number of VMs defined and started",
)

DISK_CREATED_TOTAL = Counter(
    "vm_disk_created_total",
    "Total number of disk images created with qemu-img",
    ["role"],
)

PROVISION_FAILURES = Counter(
    "vm_provision_failures_total",
    "Provisioning requests that failed, by failing step",
    ["stage"],
)

# -----------------------------
# Host metrics
# -----------------------------
HOST_CPU_USAGE = Gauge(
    "vm_manager_host_cpu_usage_percent",
    "Host CPU usage in percent",
)

HOST_MEMORY_USAGE = Gauge(
    "vm_manager_host_memory_usage_percent",
    "Host memory usage in percent",
)

HOST_DISK_USAGE = Gauge(
    "vm_manager_host_disk_usage_percent",
    "Host disk usage (root filesystem) in percent",
)

HYPERVISOR_INFO = Gauge(
    "vm_manager_hypervisor_type",
    "Label gauge exposing configured hypervisor type (for Grafana filters)",
    ["type"],
)


def init_static_metrics() -> None:
    HYPERVISOR_INFO.labels(type=HYPERVISOR_TYPE).set(1.0)


def record_vm_created() -> None:
    VM_CREATED_TOTAL.inc()


def record_disk_created(role: str) -> None:
    DISK_CREATED_TOTAL.labels(role=role).inc()


def record_provision_failure(stage: str) -> None:
    PROVISION_FAILURES.labels(stage=stage).inc()


def start_background_collectors() -> None:
    """
    Collect host-level metrics periodically using psutil.
    """

    def loop() -> None:
        log_event("[metrics] Starting background host metrics collector")
        while True:
            try:
                HOST_CPU_USAGE.set(psutil.cpu_percent(interval=1))
                HOST_MEMORY_USAGE.set(psutil.virtual_memory().percent)
                HOST_DISK_USAGE.set(psutil.disk_usage("/").percent)
            except Exception as e:  # noqa: BLE001
                log_event(f"[metrics] Collector error: {e}")
            time.sleep(METRICS_REFRESH_INTERVAL)

    t = threading.Thread(target=loop, daemon=True)
    t.start()
