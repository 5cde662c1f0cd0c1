# mpris-ctl
# Copyright (C) 2026 mpris-ctl contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""
Wire protocol between mpris-ctl and mpris-ctl-daemon.

Every message travels as one frame: a 4-byte big-endian unsigned length
followed by that many bytes of JSON.  Values are externally tagged — a
variant without data is a bare string, a variant with data is a one-key
object:

    GetLastActive          "GetLastActive"
    None                   "None"
    Players(["Foo"])       {"Players": ["Foo"]}

A well-formed request with a tag this version does not know decodes to
UnknownRequest, which the server answers with NoneResponse.  Anything that
is not well-formed raises ProtocolError; the connection is then dropped
rather than resynchronised.
"""

import asyncio
import json
import struct
from dataclasses import dataclass

from .errors import ProtocolError

HEADER = struct.Struct(">I")
DEFAULT_MAX_FRAME_BYTES = 8 * 1024 * 1024


# ── Messages ──

@dataclass(frozen=True)
class GetLastActive:
    tag = "GetLastActive"


@dataclass(frozen=True)
class UnknownRequest:
    tag: str


@dataclass(frozen=True)
class NoneResponse:
    tag = "None"


@dataclass(frozen=True)
class Players:
    players: tuple[str, ...]
    tag = "Players"

    def __post_init__(self):
        object.__setattr__(self, "players", tuple(self.players))


Request = GetLastActive | UnknownRequest
Response = NoneResponse | Players

_REQUESTS = {GetLastActive.tag: GetLastActive}


def _split_tag(value) -> tuple[str, object]:
    if isinstance(value, str):
        return value, None
    if isinstance(value, dict) and len(value) == 1:
        ((tag, body),) = value.items()
        if isinstance(tag, str):
            return tag, body
    raise ProtocolError(f"expected a tagged value, got {type(value).__name__}")


def _loads(payload: bytes):
    try:
        return json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ProtocolError(f"undecodable payload: {e}") from e


def encode_request(request: Request) -> bytes:
    if isinstance(request, UnknownRequest):
        raise ProtocolError(f"refusing to encode unknown request '{request.tag}'")
    return json.dumps(request.tag).encode()


def decode_request(payload: bytes) -> Request:
    tag, body = _split_tag(_loads(payload))
    cls = _REQUESTS.get(tag)
    if cls is None:
        return UnknownRequest(tag)
    if body is not None:
        raise ProtocolError(f"request '{tag}' carries no data")
    return cls()


def encode_response(response: Response) -> bytes:
    if isinstance(response, Players):
        return json.dumps({Players.tag: list(response.players)}).encode()
    return json.dumps(NoneResponse.tag).encode()


def decode_response(payload: bytes) -> Response:
    tag, body = _split_tag(_loads(payload))
    if tag == NoneResponse.tag and body is None:
        return NoneResponse()
    if tag == Players.tag:
        if not isinstance(body, list) or not all(isinstance(p, str) for p in body):
            raise ProtocolError("'Players' must carry a list of strings")
        return Players(body)
    raise ProtocolError(f"unknown response '{tag}'")


# ── Framing ──

def frame(payload: bytes) -> bytes:
    return HEADER.pack(len(payload)) + payload


async def read_frame(reader: asyncio.StreamReader,
                     max_length: int = DEFAULT_MAX_FRAME_BYTES) -> bytes | None:
    """Read one frame.  Returns None when the peer closed between frames.

    Raises ProtocolError for a declared length above *max_length* and
    asyncio.IncompleteReadError when the stream ends mid-frame.
    """
    try:
        header = await reader.readexactly(HEADER.size)
    except asyncio.IncompleteReadError as e:
        if not e.partial:
            return None
        raise
    (length,) = HEADER.unpack(header)
    if length > max_length:
        raise ProtocolError(f"frame of {length} bytes exceeds limit of {max_length}")
    return await reader.readexactly(length)


async def write_frame(writer: asyncio.StreamWriter, payload: bytes) -> None:
    writer.write(frame(payload))
    await writer.drain()
