import errno

import pytest

from corenet.sock import Socket
from corenet.socket_stream import SocketStream


@pytest.fixture
def pair():
    listener = Socket.create_tcp_socket()
    listener.bind(("127.0.0.1", 0))
    listener.listen()
    address = listener.local_address()
    client = Socket.create_tcp(address)
    client.connect(address)
    server = listener.accept()
    listener.close()
    yield client, server, address
    client.close()
    server.close()


def test_write_then_read(pair):
    client, server, _ = pair
    out = SocketStream(client)
    inp = SocketStream(server)
    assert out.write(b"hello world") == len(b"hello world")
    assert inp.read_fix_size(len(b"hello world")) == b"hello world"


def test_write_buffer_list(pair):
    client, server, _ = pair
    out = SocketStream(client)
    inp = SocketStream(server)
    assert out.write([b"ab", b"cd"]) == 4
    assert inp.read_fix_size(4) == b"abcd"


def test_write_fix_size_round_trip(pair):
    client, server, _ = pair
    payload = bytes(range(256)) * 40
    out = SocketStream(client)
    inp = SocketStream(server)
    assert out.write_fix_size(payload) == len(payload)
    assert inp.read_fix_size(len(payload)) == payload


def test_addresses(pair):
    client, server, address = pair
    out = SocketStream(client)
    inp = SocketStream(server)
    assert out.remote_address() == address
    assert out.remote_address_string() == f"127.0.0.1:{address[1]}"
    assert inp.local_address_string() == f"127.0.0.1:{address[1]}"
    assert inp.remote_address_string() == out.local_address_string()


def test_peer_close_reads_empty(pair):
    client, server, _ = pair
    SocketStream(client).close()
    assert SocketStream(server).read(16) == b""


def test_close_marks_disconnected(pair):
    client, _, _ = pair
    stream = SocketStream(client)
    assert stream.is_connected() is True
    stream.close()
    assert stream.is_connected() is False
    with pytest.raises(OSError) as info:
        stream.read(1)
    assert info.value.errno == errno.ENOTCONN


def test_owner_context_closes_socket(pair):
    client, _, _ = pair
    with SocketStream(client, owner=True):
        pass
    assert client.is_connected() is False


def test_non_owner_context_keeps_socket(pair):
    client, _, _ = pair
    with SocketStream(client, owner=False) as stream:
        assert stream.owner is False
    assert client.is_connected() is True


def test_without_socket():
    stream = SocketStream(None)
    assert stream.is_connected() is False
    assert stream.remote_address() is None
    assert stream.local_address() is None
    assert stream.remote_address_string() == ""
    assert stream.local_address_string() == ""
    with pytest.raises(OSError):
        stream.write(b"x")