import logging
from typing import Any, Dict, List, NoReturn, Optional

from fastapi import HTTPException
from jinja2 import TemplateError

from config.settings import HYPERVISOR_TYPE, LIBVIRT_URI
from core.descriptor import (
    DATA_DEVICE,
    ROOT_DEVICE,
    DescriptorGenerator,
    DiskDevice,
    build_context,
)
from core.disk_manager import DiskCreationError, DiskManager
from core.lazy_imports import libvirt
from core.logger import log_event
from core.metrics import record_disk_created, record_provision_failure, record_vm_created
from schemas.vm_schema import VMCreateSchema


class VMController:
    """
    Provisions a VM in five fixed steps:

        1. create (or reuse) disk files
        2. connect to libvirt
        3. render the domain XML
        4. define the domain
        5. start it

    Each request opens its own libvirt connection and closes it when done.
    Any failure is logged and raised as a 500 HTTPException; disks created
    by an earlier step are left in place.
    """

    def __init__(
        self,
        generator: DescriptorGenerator,
        disk_manager: Optional[DiskManager] = None,
        uri: str = LIBVIRT_URI,
    ) -> None:
        self.generator = generator
        self.disk_manager = disk_manager or DiskManager()
        self.uri = uri

    # ------------------------------------------------------------------
    # Utility methods
    # ------------------------------------------------------------------
    @staticmethod
    def _fail(stage: str, message: str, exc: Optional[Exception] = None) -> NoReturn:
        log_event(f"[vm] {message}", level=logging.ERROR)
        record_provision_failure(stage)
        error = HTTPException(status_code=500, detail=message)
        if exc is not None:
            raise error from exc
        raise error

    def prepare_disks(self, payload: VMCreateSchema) -> List[DiskDevice]:
        """
        Resolve the disk list for `payload`, creating new disk files as needed.

        The root disk always comes first.
        """
        disks: List[DiskDevice] = []

        if payload.prebuilt_disk_path:
            root_path = payload.prebuilt_disk_path
            log_event(f"[vm] Using existing disk for root of '{payload.name}': {root_path}")
        else:
            root_path = self.disk_manager.root_disk_path(payload.name)
            try:
                self.disk_manager.create_disk(root_path, payload.disk_size_gb)
            except DiskCreationError as e:
                self._fail("disk", f"Failed to create root disk: {e}", e)
            record_disk_created("root")
        disks.append(DiskDevice(dev=ROOT_DEVICE, path=root_path))

        if payload.data_disk_size_gb:
            data_path = self.disk_manager.data_disk_path(payload.name)
            try:
                self.disk_manager.create_disk(data_path, payload.data_disk_size_gb)
            except DiskCreationError as e:
                self._fail("disk", f"Failed to create additional data disk: {e}", e)
            record_disk_created("data")
            disks.append(DiskDevice(dev=DATA_DEVICE, path=data_path))

        return disks

    def _connect(self):
        try:
            conn = libvirt.open(self.uri)
        except libvirt.libvirtError as e:
            self._fail("connect", f"Failed to connect libvirt ({self.uri}): {e}", e)
        if conn is None:
            self._fail("connect", f"Failed to connect libvirt ({self.uri})")
        return conn

    # ------------------------------------------------------------------
    # Public VM operations
    # ------------------------------------------------------------------
    def create_vm(self, payload: VMCreateSchema) -> Dict[str, Any]:
        name = payload.name

        disks = self.prepare_disks(payload)

        conn = self._connect()
        try:
            context = build_context(
                name=name,
                memory_mb=payload.memory_mb,
                cpus=payload.cpus,
                disks=disks,
                iso_image=payload.iso_image,
            )
            try:
                domain_xml = self.generator.render(context)
            except TemplateError as e:
                self._fail("descriptor", f"Failed to generate domain XML: {e}", e)

            log_event(f"[vm] Domain XML for '{name}':\n{domain_xml}", level=logging.DEBUG)

            try:
                dom = conn.defineXML(domain_xml)
            except libvirt.libvirtError as e:
                self._fail("define", f"defineXML failed for '{name}': {e}", e)
            if dom is None:
                self._fail("define", f"defineXML failed for '{name}'")

            try:
                dom.create()
            except libvirt.libvirtError as e:
                try:
                    dom.undefine()
                except libvirt.libvirtError as undefine_error:
                    log_event(
                        f"[vm] Cleanup undefine failed for '{name}': {undefine_error}",
                        level=logging.WARNING,
                    )
                self._fail("start", f"Failed to start domain '{name}': {e}", e)
        finally:
            conn.close()

        record_vm_created()
        log_event(
            f"[vm] Created VM '{name}' (memory={payload.memory_mb}MiB, cpus={payload.cpus}, "
            f"disks={[d.path for d in disks]}, iso={payload.iso_image}, "
            f"hypervisor={HYPERVISOR_TYPE})"
        )
        return {
            "name": name,
            "uuid": context.uuid,
            "mac_address": context.mac_address,
            "memory_mb": payload.memory_mb,
            "cpus": payload.cpus,
            "disks": [{"dev": d.dev, "path": d.path} for d in disks],
            "iso_image": payload.iso_image,
        }
