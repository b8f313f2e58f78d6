# zkay_gadgets/typed/__init__.py
from .zkay_type import ZK_124, ZK_BOOL, ZkayType, check_type, negative_constant, zk_int, zk_uint
from .typed_wire import TypedWire

__all__ = [
    "ZkayType",
    "ZK_BOOL",
    "ZK_124",
    "zk_uint",
    "zk_int",
    "check_type",
    "negative_constant",
    "TypedWire",
]
