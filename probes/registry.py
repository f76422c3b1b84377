# ============================================================================
# PROBE REGISTRY
# ============================================================================
# EPOCH: 1 - CUSTOM UPTIME PROBES
# STATUS: Core - Probe registration and lookup
# PURPOSE: Hold the single probe a process serves and resolve PROBE_TARGET
# CREATED: 19 OCT 2026
# ============================================================================
"""
Probe Registry

A probe service runs exactly one probe. The registry enforces that:
the first registration wins and any further attempt fails fast.

Design:
- Probes are registered at import time via decorator, or resolved from
  a "module:attr" target the way uvicorn resolves "main:app"
- Registration is one-shot; the registered probe is immutable
- Supports sync and async functions, Probe subclasses and instances

Usage:
    # probes/my_check.py
    @register_probe
    def my_check(ctx):
        ...

    # PROBE_TARGET=probes.my_check            (module registers itself)
    # PROBE_TARGET=probes.examples:http_ok    (attribute lifted directly)
"""

import importlib
import inspect
import logging
from typing import Any, Callable, Optional

from probes.core import Probe, as_probe

logger = logging.getLogger(__name__)


# ============================================================================
# EXCEPTIONS
# ============================================================================

class ProbeRegistryError(Exception):
    """Base exception for probe registration errors."""
    pass


class DuplicateProbeError(ProbeRegistryError):
    """Raised when a second probe is registered in the same process."""
    def __init__(self, existing: str, rejected: str):
        self.existing = existing
        self.rejected = rejected
        super().__init__(
            f"Probe already registered: {existing} (refusing {rejected})"
        )


class ProbeNotRegisteredError(ProbeRegistryError):
    """Raised when the runtime needs a probe and none was registered."""
    def __init__(self):
        super().__init__("No probe registered")


class ProbeLoadError(ProbeRegistryError):
    """Raised when a probe target cannot be imported or resolved."""
    def __init__(self, target: str, detail: str):
        self.target = target
        super().__init__(f"Cannot load probe {target!r}: {detail}")


# ============================================================================
# REGISTRY
# ============================================================================

class ProbeRegistry:
    """Holds at most one probe."""

    def __init__(self):
        self._probe: Optional[Probe] = None

    def register(self, probe: Probe) -> Probe:
        """
        Register the process's probe.

        Raises:
            DuplicateProbeError: if a probe is already registered
        """
        if self._probe is not None:
            raise DuplicateProbeError(self._probe.name, probe.name)
        self._probe = probe
        logger.debug(f"Registered probe: {probe!r}")
        return probe

    def get(self) -> Probe:
        """
        Get the registered probe.

        Raises:
            ProbeNotRegisteredError: if nothing has been registered
        """
        if self._probe is None:
            raise ProbeNotRegisteredError()
        return self._probe

    @property
    def is_registered(self) -> bool:
        return self._probe is not None

    def clear(self) -> None:
        """Remove the registered probe (tests only)."""
        self._probe = None


_registry: Optional[ProbeRegistry] = None


def get_registry() -> ProbeRegistry:
    """Get the global probe registry."""
    global _registry
    if _registry is None:
        _registry = ProbeRegistry()
    return _registry


def register_probe(
    target: Any = None,
    *,
    name: Optional[str] = None,
    registry: Optional[ProbeRegistry] = None,
) -> Callable:
    """
    Decorator to register the process's probe.

    Works bare or with arguments, on functions and Probe subclasses:

        @register_probe
        def check(ctx): ...

        @register_probe(name="orders-api")
        async def check(ctx): ...

    The decorated object is returned unchanged.
    """
    def decorator(obj: Any) -> Any:
        (registry or get_registry()).register(as_probe(obj, name=name))
        return obj

    if target is not None:
        return decorator(target)
    return decorator


def _wraps(probe: Probe, obj: Any) -> bool:
    if probe is obj or getattr(probe, "func", None) is obj:
        return True
    return inspect.isclass(obj) and type(probe) is obj


def load_probe(target: str, registry: Optional[ProbeRegistry] = None) -> Probe:
    """
    Resolve a probe target and return the registered probe.

    Args:
        target: "package.module:attr" to lift an attribute directly, or
                "package.module" for a module that uses @register_probe
        registry: Registry to use (global if None)

    Raises:
        ProbeLoadError: target malformed, not importable or not a probe
        DuplicateProbeError: target registers a probe on top of another
    """
    registry = registry or get_registry()

    module_name, _, attr = target.partition(":")
    if not module_name:
        raise ProbeLoadError(target, "expected 'module' or 'module:attr'")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ProbeLoadError(target, str(e)) from e

    if attr:
        obj = module
        for part in attr.split("."):
            try:
                obj = getattr(obj, part)
            except AttributeError as e:
                raise ProbeLoadError(target, f"attribute {part!r} not found") from e
        if registry.is_registered:
            # Importing the module may already have registered this object
            existing = registry.get()
            if not _wraps(existing, obj):
                raise DuplicateProbeError(existing.name, attr)
        else:
            try:
                registry.register(as_probe(obj, name=attr))
            except TypeError as e:
                raise ProbeLoadError(target, str(e)) from e
    elif not registry.is_registered:
        raise ProbeLoadError(target, "module did not register a probe")

    probe = registry.get()
    logger.info(f"Loaded probe {probe.name!r} from {target}")
    return probe


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "ProbeRegistryError",
    "DuplicateProbeError",
    "ProbeNotRegisteredError",
    "ProbeLoadError",
    "ProbeRegistry",
    "get_registry",
    "register_probe",
    "load_probe",
]
