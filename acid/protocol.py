"""The RPC wire frame: an 11-byte big-endian header followed by the content."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass

MAGIC = 0xCC
DEFAULT_VERSION = 0x01
BASE_LENGTH = 11

_HEADER = struct.Struct(">BBBII")


class MsgType(enum.IntEnum):
    HEARTBEAT_PACKET = 0
    RPC_PROVIDER = 1
    RPC_CONSUMER = 2
    RPC_REQUEST = 3
    RPC_RESPONSE = 4
    RPC_METHOD_REQUEST = 5
    RPC_METHOD_RESPONSE = 6
    RPC_SERVICE_REGISTER = 7
    RPC_SERVICE_REGISTER_RESPONSE = 8
    RPC_SERVICE_DISCOVER = 9
    RPC_SERVICE_DISCOVER_RESPONSE = 10
    RPC_SUBSCRIBE_REQUEST = 11
    RPC_SUBSCRIBE_RESPONSE = 12
    RPC_PUBLISH_REQUEST = 13
    RPC_PUBLISH_RESPONSE = 14


class ProtocolError(ValueError):
    """Raised when a frame cannot be decoded."""


@dataclass(frozen=True)
class Protocol:
    """One frame: magic, version, type, sequence id, content length and content."""

    msg_type: MsgType = MsgType.HEARTBEAT_PACKET
    content: bytes = b""
    sequence_id: int = 0
    content_length: int = 0
    magic: int = MAGIC
    version: int = DEFAULT_VERSION

    @classmethod
    def create(cls, msg_type: MsgType, content: bytes | str = b"", sequence_id: int = 0) -> Protocol:
        """Build a frame; text content is encoded as UTF-8."""
        if isinstance(content, str):
            content = content.encode("utf-8")
        if not 0 <= sequence_id <= 0xFFFFFFFF:
            raise ValueError("sequence id must fit in 32 bits")
        return cls(
            msg_type=MsgType(msg_type),
            content=bytes(content),
            sequence_id=sequence_id,
            content_length=len(content),
        )

    @classmethod
    def heartbeat(cls) -> Protocol:
        """A heartbeat frame with no content."""
        return cls.create(MsgType.HEARTBEAT_PACKET, b"")

    def _header(self) -> bytes:
        return _HEADER.pack(
            self.magic, self.version, int(self.msg_type), self.sequence_id, len(self.content)
        )

    def encode_meta(self) -> bytes:
        """The header alone."""
        return self._header()

    def encode(self) -> bytes:
        """The header followed by the content."""
        return self._header() + self.content

    @classmethod
    def _unpack_header(cls, data: bytes) -> tuple[int, int, MsgType, int, int]:
        if len(data) < BASE_LENGTH:
            raise ProtocolError(f"frame header needs {BASE_LENGTH} bytes, got {len(data)}")
        magic, version, raw_type, sequence_id, length = _HEADER.unpack_from(data)
        try:
            msg_type = MsgType(raw_type)
        except ValueError:
            raise ProtocolError(f"unknown message type {raw_type}") from None
        return magic, version, msg_type, sequence_id, length

    @classmethod
    def decode_meta(cls, data: bytes) -> Protocol:
        """Decode a header; the content is left empty."""
        magic, version, msg_type, sequence_id, length = cls._unpack_header(data)
        return cls(
            msg_type=msg_type,
            content=b"",
            sequence_id=sequence_id,
            content_length=length,
            magic=magic,
            version=version,
        )

    @classmethod
    def decode(cls, data: bytes) -> Protocol:
        """Decode a whole frame."""
        magic, version, msg_type, sequence_id, length = cls._unpack_header(data)
        end = BASE_LENGTH + length
        if len(data) < end:
            raise ProtocolError(f"frame content needs {length} bytes, got {len(data) - BASE_LENGTH}")
        content = bytes(data[BASE_LENGTH:end])
        return cls(
            msg_type=msg_type,
            content=content,
            sequence_id=sequence_id,
            content_length=len(content),
            magic=magic,
            version=version,
        )

    def __str__(self) -> str:
        text = self.content.decode("utf-8", errors="replace")
        return (
            f"[ magic={self.magic:#04x} version={self.version} type={self.msg_type.name}"
            f" id={self.sequence_id} length={self.content_length} content={text} ]"
        )