from pockets._internal.container import Pocket, Thunk, create_pocket

__all__ = ["Pocket", "Thunk", "create_pocket"]
