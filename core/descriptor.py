import logging
import random
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined, TemplateError

from config.settings import VM_DOMAIN_TYPE, VM_NETWORK
from core.logger import log_event

# locally administered, used by QEMU/KVM for guest NICs
MAC_PREFIX = "52:54:00"

ROOT_DEVICE = "vda"
DATA_DEVICE = "vdb"


@dataclass(frozen=True)
class DiskDevice:
    """A disk attached to the domain; list order is boot order (first = root)."""

    dev: str
    path: str


@dataclass
class DescriptorContext:
    """
    Fully resolved values for one render of the domain template.

    uuid and mac_address are generated by the caller (see build_context),
    so rendering the same context twice yields the same XML.
    """

    name: str
    uuid: str
    memory_kib: int
    vcpus: int
    mac_address: str
    disks: List[DiskDevice] = field(default_factory=list)
    iso_image: Optional[str] = None
    domain_type: str = VM_DOMAIN_TYPE
    network: str = VM_NETWORK

    @property
    def has_iso(self) -> bool:
        return bool(self.iso_image)

    def template_vars(self) -> Dict[str, Any]:
        # None values are left out so StrictUndefined flags them on render;
        # has_iso is the only switch the template uses for the cdrom section.
        values = {
            "name": self.name,
            "uuid": self.uuid,
            "memory_kib": self.memory_kib,
            "vcpus": self.vcpus,
            "mac_address": self.mac_address,
            "disks": self.disks,
            "iso_image": self.iso_image or None,
            "has_iso": self.has_iso,
            "domain_type": self.domain_type,
            "network": self.network,
        }
        return {key: value for key, value in values.items() if value is not None}


def generate_mac_address(rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    return "{}:{:02x}:{:02x}:{:02x}".format(
        MAC_PREFIX,
        rng.randint(0, 255),
        rng.randint(0, 255),
        rng.randint(0, 255),
    )


def build_context(
    name: str,
    memory_mb: int,
    cpus: int,
    disks: List[DiskDevice],
    iso_image: Optional[str] = None,
    domain_type: str = VM_DOMAIN_TYPE,
    network: str = VM_NETWORK,
) -> DescriptorContext:
    return DescriptorContext(
        name=name,
        uuid=str(uuid.uuid4()),
        memory_kib=memory_mb * 1024,
        vcpus=cpus,
        mac_address=generate_mac_address(),
        disks=list(disks),
        iso_image=iso_image,
        domain_type=domain_type,
        network=network,
    )


class DescriptorGenerator:
    """
    Renders libvirt domain XML from a Jinja2 template.

    The template is loaded and parsed once, when the generator is built;
    a missing or broken template is logged and re-raised so the service
    refuses to start.
    """

    def __init__(self, template_path: Path) -> None:
        template_path = Path(template_path)
        self.env = Environment(
            loader=FileSystemLoader(str(template_path.parent)),
            undefined=StrictUndefined,
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        try:
            self.template = self.env.get_template(template_path.name)
        except TemplateError as e:
            log_event(f"[descriptor] Failed to load template {template_path}: {e}", level=logging.ERROR)
            raise
        log_event(f"[descriptor] Loaded domain template {template_path}")

    def render(self, context: DescriptorContext) -> str:
        """
        Render the domain XML for `context`.

        Raises jinja2.TemplateError (UndefinedError) when a required field
        is missing from the context.
        """
        return self.template.render(**context.template_vars())
