"""Cut off TCP connections whose payload matches a pattern: hardware
addresses, packet matching and forging, and the tcp-block command."""

__version__ = "0.1.0"
__all__ = ["cli", "mac", "packet"]