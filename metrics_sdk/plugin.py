"""Base class for plugins that instrument a module with metrics"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class BaseMetricPlugin(ABC):
    """Patches a module so it records metrics through a provider's meter"""

    def __init__(self, meter_name: str, meter_version: str = "*"):
        self._meter_name = meter_name
        self._meter_version = meter_version
        self._module_exports: Any = None
        self._meter = None
        self._config: Dict[str, Any] = {}

    def enable(self, module_exports: Any, meter_provider, config: Optional[Dict[str, Any]] = None) -> Any:
        """Obtain a meter from the provider and patch the module"""
        self._module_exports = module_exports
        self._meter = meter_provider.get_meter(self._meter_name, self._meter_version)
        self._config = config or {}
        return self.patch()

    def disable(self) -> None:
        self.unpatch()

    @abstractmethod
    def patch(self) -> Any:
        pass

    @abstractmethod
    def unpatch(self) -> None:
        pass
