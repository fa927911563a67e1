from pockets._internal.adapters import from_callback

__all__ = ["from_callback"]
