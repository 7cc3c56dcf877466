import importlib


class LazyModule:
    """
    A proxy for a module that is imported the first time an attribute is used.

    Lets the API load (and its schema and error mapping be served or tested)
    on hosts where the module is not installed; the first hypervisor call
    still raises ImportError there.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._module = None

    def __getattr__(self, attr):
        if self._module is None:
            self._module = importlib.import_module(self.name)
        return getattr(self._module, attr)


libvirt = LazyModule("libvirt")
