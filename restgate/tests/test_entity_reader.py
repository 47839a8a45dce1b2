from dataclasses import dataclass
from typing import Dict, List

import pytest

from restgate.client.entity import EntityReader
from restgate.client.response import HttpResponse, buffer_response
from restgate.errors import EntityDecodeError, TransportError


@dataclass
class Point:
    x: int
    y: int


def test_reads_bytes_str_and_json_shapes():
    reader = EntityReader()

    assert reader.read(HttpResponse.of(200, b"\x00\x01"), bytes) == b"\x00\x01"
    latin = HttpResponse.of(
        200, "é".encode("latin-1"), headers={"Content-Type": "text/plain; charset=latin-1"}
    )
    assert reader.read(latin, str) == "é"
    assert reader.read(HttpResponse.of(200, b'{"x": 1, "y": 2}'), Point) == Point(1, 2)
    assert reader.read(HttpResponse.of(200, b'{"a": 1}'), Dict[str, int]) == {"a": 1}
    assert reader.read(HttpResponse.of(200, b"null"), List[int] | None) is None


def test_shape_mismatch_raises_entity_decode_error():
    with pytest.raises(EntityDecodeError) as info:
        EntityReader().read(HttpResponse.of(200, b'{"x": "nope"}'), Point)
    assert info.value.status == 200


class Opaque:
    def __init__(self, a):
        self.a = a


def test_shape_pydantic_cannot_handle_raises_entity_decode_error():
    with pytest.raises(EntityDecodeError) as info:
        EntityReader().read(HttpResponse.of(200, b'{"a": 1}'), Opaque)
    assert info.value.status == 200
    assert "Opaque" in str(info.value)


def test_response_read_after_close_without_buffer_fails():
    response = HttpResponse.of(200, b"abc")
    response.close()
    response.close()

    assert response.closed
    with pytest.raises(TransportError):
        response.read()


def test_response_read_is_buffered():
    response = HttpResponse.of(200, b"abc")
    assert response.read() == b"abc"
    response.close()
    assert response.read() == b"abc"
    assert response.reason == "OK"


def test_buffer_response_joins_repeated_headers_and_closes_original():
    original = HttpResponse.of(201, b"body", headers=[("X-A", "1"), ("X-A", "2"), ("X-B", "3")])

    copy = buffer_response(original)

    assert original.closed
    assert copy.status == 201
    assert copy.read() == b"body"
    assert copy.headers["x-a"] == "1;2"
    assert copy.headers["X-B"] == "3"
