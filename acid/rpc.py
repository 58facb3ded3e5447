"""RPC call states and the result wrapper sent back from a remote call."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from acid.serializer import Serializer

T = TypeVar("T")

# Prefix a connection pool uses when subscribing to the registry.
RPC_SERVICE_SUBSCRIBE = "[[rpc service subscribe]]"

# Spec for the value of a call that returns nothing.
VOID = "int8"


class RpcState(enum.IntEnum):
    SUCCESS = 0
    FAIL = 1
    NO_MATCH = 2
    NO_METHOD = 3
    CLOSED = 4
    TIMEOUT = 5


@dataclass
class Result(Generic[T]):
    """The outcome of an RPC call: a status code, a message and a value."""

    code: int = RpcState.SUCCESS
    msg: str = ""
    val: T | None = None

    @classmethod
    def success(cls) -> Result[T]:
        return cls(code=RpcState.SUCCESS, msg="success")

    @classmethod
    def fail(cls) -> Result[T]:
        return cls(code=RpcState.FAIL, msg="fail")

    def valid(self) -> bool:
        """True when the call succeeded."""
        return self.code == RpcState.SUCCESS

    def serialize(self, serializer: Serializer, spec: Any = None) -> None:
        """Write code, message and value; the value is always written."""
        serializer.write_uint16(int(self.code))
        serializer.write_string(self.msg)
        if spec is None and self.val is None:
            spec = VOID
        serializer.write(self.val, spec)

    @classmethod
    def deserialize(cls, serializer: Serializer, spec: Any = VOID) -> Result:
        """Read a result; the value is read only when the code is success."""
        code: int = serializer.read_uint16()
        msg = serializer.read_string()
        val = serializer.read(spec) if code == RpcState.SUCCESS else None
        try:
            code = RpcState(code)
        except ValueError:
            pass
        return cls(code=code, msg=msg, val=val)

    def __str__(self) -> str:
        return f"[ code={int(self.code)} msg={self.msg} val={self.val} ]"