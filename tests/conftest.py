import os
import tempfile

# settings are read at import time; keep test logs out of the project tree
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="vm-manager-tests-"))
os.environ.setdefault("VM_STORAGE_PATH", "/srv/test-images")

from types import SimpleNamespace  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402

from config.settings import VM_TEMPLATE_PATH  # noqa: E402
from core.descriptor import DescriptorGenerator  # noqa: E402


@pytest.fixture(scope="session")
def generator():
    return DescriptorGenerator(VM_TEMPLATE_PATH)


class LibvirtCallError(Exception):
    """Stands for libvirt.libvirtError in controller and API tests."""


@pytest.fixture
def libvirt_api(monkeypatch):
    """
    Replace the controller's libvirt handle with mocks.

    Only `open` and `libvirtError` are used by the controller; the
    connection returned by `open` defines a MagicMock domain.
    """
    import core.vm_controller as vm_controller_module

    conn = MagicMock()
    api = SimpleNamespace(
        open=MagicMock(return_value=conn),
        libvirtError=LibvirtCallError,
        conn=conn,
        domain=conn.defineXML.return_value,
    )
    monkeypatch.setattr(vm_controller_module, "libvirt", api)
    return api
