"""Core contracts (Protocol) implemented by adapters."""

from core.interfaces.gateway import ApiGateway

__all__ = ["ApiGateway"]
