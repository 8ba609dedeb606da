# app/common/framing.py
"""
Length-prefixed JSON framing over a binary stream (socket.makefile("rwb") or SocketStream).

Each frame = 4 ASCII decimal digits, zero padded, giving the byte length N of
the payload, followed by N bytes of UTF-8 JSON:

    0071{"header":{"timestamp":"19/10/2026 20:31:05"},"msg_type":"RequestToken","body":null}

The prefix is authoritative: both halves of a frame are read with exact-count
reads, so a successful decode leaves the stream at the start of the next frame.
"""

import json
import socket
import time
from typing import BinaryIO, Optional

from pydantic import ValidationError

from app.common.errors import DecodingError, EncodingError, FramingError
from app.common.protocol import Message

PREFIX_LEN = 4
MAX_PAYLOAD = 10 ** PREFIX_LEN - 1


def encode(message: Message) -> bytes:
    try:
        payload = message.model_dump_json().encode("utf-8")
    except (TypeError, ValueError) as e:
        raise EncodingError(f"cannot serialize {message.kind} message: {e}") from e

    if len(payload) > MAX_PAYLOAD:
        raise EncodingError(
            f"payload of {len(payload)} bytes does not fit a {PREFIX_LEN}-digit prefix"
        )

    return f"{len(payload):0{PREFIX_LEN}d}".encode("ascii") + payload


def read_exact(stream: BinaryIO, n: int) -> bytes:
    """Read exactly n bytes or raise FramingError."""
    buf = bytearray()
    while len(buf) < n:
        try:
            chunk = stream.read(n - len(buf))
        except OSError as e:
            # includes socket timeouts from the per-connection read deadline
            raise FramingError(f"read failed: {e}") from e
        if not chunk:
            raise FramingError(f"connection closed after {len(buf)} of {n} bytes")
        buf.extend(chunk)
    return bytes(buf)


def decode(stream: BinaryIO) -> Message:
    prefix = read_exact(stream, PREFIX_LEN)
    if not all(0x30 <= b <= 0x39 for b in prefix):
        raise FramingError(f"invalid length prefix {prefix!r}")
    length = int(prefix.decode("ascii"))

    payload = read_exact(stream, length)

    try:
        text = payload.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodingError(f"payload is not UTF-8: {e}") from e

    # a zero-length payload is the empty structure
    try:
        data = json.loads(text) if text else {}
    except json.JSONDecodeError as e:
        raise DecodingError(f"payload is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise DecodingError(f"payload must be a JSON object, got {type(data).__name__}")

    try:
        return Message.model_validate(data)
    except ValidationError as e:
        raise DecodingError(f"payload is not a valid message: {e}") from e


# ============ Stream helpers ============

def send_message(stream: BinaryIO, message: Message) -> None:
    frame = encode(message)
    try:
        stream.write(frame)
        stream.flush()
    except OSError as e:
        raise FramingError(f"write failed: {e}") from e


def recv_message(stream: BinaryIO) -> Message:
    begin_frame = getattr(stream, "begin_frame", None)
    if begin_frame is not None:
        begin_frame()
    return decode(stream)


class SocketStream:
    """
    Unbuffered stream over a connected socket with a per-frame read deadline.

    The deadline starts when recv_message begins a frame and bounds every
    chunk read of that frame, so a peer trickling bytes cannot hold the
    connection open past frame_timeout.
    """

    def __init__(self, sock: socket.socket, frame_timeout: Optional[float] = None):
        self.sock = sock
        self.frame_timeout = frame_timeout
        self._deadline: Optional[float] = None
        sock.settimeout(frame_timeout)

    def begin_frame(self) -> None:
        if self.frame_timeout is not None:
            self._deadline = time.monotonic() + self.frame_timeout

    def read(self, n: int) -> bytes:
        if self._deadline is not None:
            remaining = self._deadline - time.monotonic()
            if remaining <= 0:
                raise socket.timeout("frame read deadline exceeded")
            self.sock.settimeout(remaining)
        return self.sock.recv(n)

    def write(self, data: bytes) -> None:
        self.sock.settimeout(self.frame_timeout)
        self.sock.sendall(data)

    def flush(self) -> None:
        pass
