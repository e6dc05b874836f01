"""Host services used by the command line front end."""

from .ports import PortInfo, PortService

__all__ = ["PortInfo", "PortService"]
