from pockets._internal.providers import Constant, Factory, factory

__all__ = ["Constant", "Factory", "factory"]
