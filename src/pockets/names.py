from pockets._internal.names import canonicalize

__all__ = ["canonicalize"]
