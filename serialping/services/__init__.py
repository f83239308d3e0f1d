"""Host-side services used by the serialping command line."""

from .ports import PortDescriptor, PortService, format_port_listing

__all__ = ["PortDescriptor", "PortService", "format_port_listing"]
