from __future__ import annotations

import socket
import threading

import pytest

from ipc.protocol import (
    ActivityInvalid,
    ChannelBroken,
    ClientIdInvalid,
    IllegalState,
    LinkError,
    Opcode,
    ProtocolViolation,
    decode_frame,
    encode_frame,
)
from soundcloud_rpc.core import LinkState, PresenceLink, TransportChannel
from soundcloud_rpc.core.link import strip_activity_error

READY = (Opcode.FRAME, {"cmd": "DISPATCH", "evt": "READY", "data": {"v": 1}})


class ScriptedChannel:
    """In-memory channel that replays canned frames and records what was sent."""

    def __init__(self, *replies, fail_on=(), raw=b""):
        self.inbox = bytearray(b"".join(encode_frame(op, payload) for op, payload in replies) + raw)
        self.sent = []
        self.fail_on = set(fail_on)
        self.connect_calls = 0
        self.close_calls = 0

    def connect(self):
        self.connect_calls += 1
        return "fake-endpoint"

    def read_exact(self, size):
        if len(self.inbox) < size:
            raise ChannelBroken("script exhausted")
        data = bytes(self.inbox[:size])
        del self.inbox[:size]
        return data

    def write_all(self, data):
        opcode, payload = decode_frame(data)
        self.sent.append((opcode, payload))
        if opcode in self.fail_on:
            raise ChannelBroken("write failed")

    def close(self):
        self.close_calls += 1

    def push(self, opcode, payload):
        self.inbox.extend(encode_frame(opcode, payload))


def _ready_link(*replies, **kwargs):
    channel = ScriptedChannel(READY, *replies, **kwargs)
    return PresenceLink("1270073214063743036", channel=channel, pid=4242), channel


def test_handshake_sends_version_and_client_id():
    link, channel = _ready_link()

    assert link.state is LinkState.READY
    assert channel.connect_calls == 1
    assert channel.sent == [(Opcode.HANDSHAKE, {"v": 1, "client_id": "1270073214063743036"})]


def test_handshake_invalid_client_id():
    channel = ScriptedChannel((Opcode.CLOSE, {"code": 4000, "message": "Invalid Client ID"}))

    with pytest.raises(ClientIdInvalid) as excinfo:
        PresenceLink("nope", channel=channel)
    assert excinfo.value.code == 4000
    assert channel.close_calls == 1


def test_handshake_other_code_is_link_error():
    channel = ScriptedChannel((Opcode.CLOSE, {"code": 4004, "message": "Invalid API version"}))

    with pytest.raises(LinkError) as excinfo:
        PresenceLink("123", channel=channel)
    assert type(excinfo.value) is LinkError
    assert excinfo.value.code == 4004
    assert excinfo.value.message == "Invalid API version"


def test_handshake_code_without_message_uses_default():
    channel = ScriptedChannel((Opcode.CLOSE, {"code": 1000}))

    with pytest.raises(LinkError) as excinfo:
        PresenceLink("123", channel=channel)
    assert excinfo.value.message == "Unknown error"


def test_handshake_malformed_response():
    channel = ScriptedChannel((Opcode.FRAME, {"evt": "SOMETHING_ELSE"}))

    with pytest.raises(LinkError) as excinfo:
        PresenceLink("123", channel=channel)
    assert excinfo.value.code == 0
    assert excinfo.value.message == "unexpected handshake response"


def test_handshake_garbage_payload_is_protocol_violation():
    raw = b"\x01\x00\x00\x00\x05\x00\x00\x00{nope"
    channel = ScriptedChannel(raw=raw)

    with pytest.raises(ProtocolViolation):
        PresenceLink("123", channel=channel)
    assert channel.close_calls == 1


def test_set_activity_sends_envelope_and_returns_reply():
    reply = {"cmd": "SET_ACTIVITY", "evt": None, "data": {"details": "Song"}}
    link, channel = _ready_link((Opcode.FRAME, reply))
    activity = {"details": "Song", "state": "by Artist"}

    assert link.set_activity(activity) == reply

    opcode, payload = channel.sent[-1]
    assert opcode is Opcode.FRAME
    assert payload["cmd"] == "SET_ACTIVITY"
    assert payload["args"] == {"pid": 4242, "activity": activity}
    assert isinstance(payload["nonce"], str) and payload["nonce"]


def test_each_request_gets_a_fresh_nonce():
    ok = (Opcode.FRAME, {"cmd": "SET_ACTIVITY", "data": {}})
    link, channel = _ready_link(ok, ok)
    link.set_activity({"details": "a"})
    link.set_activity({"details": "b"})

    assert channel.sent[1][1]["nonce"] != channel.sent[2][1]["nonce"]


def test_activity_validation_error_strips_wrapper():
    error = {"evt": "ERROR", "data": {"code": 4000, "message": 'child "activity" fails because [title is required]'}}
    link, _ = _ready_link((Opcode.FRAME, error))

    with pytest.raises(ActivityInvalid) as excinfo:
        link.set_activity({"state": "by nobody"})
    assert excinfo.value.message == "title is required"
    assert link.ready


def test_activity_validation_error_without_wrapper_is_kept():
    error = {"evt": "ERROR", "data": {"code": 4000, "message": "plain failure"}}
    link, _ = _ready_link((Opcode.FRAME, error))

    with pytest.raises(ActivityInvalid) as excinfo:
        link.set_activity({})
    assert excinfo.value.message == "plain failure"


def test_other_activity_error_is_link_error():
    error = {"evt": "ERROR", "data": {"code": 5000, "message": "Unknown Error"}}
    link, _ = _ready_link((Opcode.FRAME, error))

    with pytest.raises(LinkError) as excinfo:
        link.set_activity({"details": "x"})
    assert type(excinfo.value) is LinkError
    assert (excinfo.value.code, excinfo.value.message) == (5000, "Unknown Error")


def test_ping_is_answered_before_reply():
    ok = {"cmd": "SET_ACTIVITY", "data": {}}
    link, channel = _ready_link((Opcode.PING, {"seq": 7}), (Opcode.FRAME, ok))

    assert link.set_activity({"details": "x"}) == ok
    assert channel.sent[-1] == (Opcode.PONG, {"seq": 7})


def test_clear_then_close_sends_frame_then_close():
    link, channel = _ready_link((Opcode.FRAME, {"cmd": "SET_ACTIVITY", "data": None}))

    link.clear_activity()
    link.close()

    sent = channel.sent[1:]
    assert [opcode for opcode, _ in sent] == [Opcode.FRAME, Opcode.CLOSE]
    assert sent[0][1]["args"]["activity"] == {}
    assert sent[1][1] == {}
    assert channel.close_calls == 1
    assert link.state is LinkState.CLOSED


def test_close_releases_channel_even_if_send_fails():
    link, channel = _ready_link((Opcode.FRAME, {"data": {}}), fail_on={Opcode.CLOSE})

    link.clear_activity()
    with pytest.raises(ChannelBroken):
        link.close()

    assert [opcode for opcode, _ in channel.sent[1:]] == [Opcode.FRAME, Opcode.CLOSE]
    assert channel.close_calls == 1
    assert link.state is LinkState.CLOSED


def test_operations_after_close_fail_fast():
    link, _ = _ready_link()
    link.close()

    with pytest.raises(IllegalState):
        link.set_activity({"details": "late"})
    with pytest.raises(IllegalState):
        link.close()


def test_corrupt_reply_closes_link():
    link, channel = _ready_link(raw=b"\x01\x00\x00\x00\x03\x00\x00\x00]]]")

    with pytest.raises(ProtocolViolation):
        link.set_activity({"details": "x"})
    assert link.state is LinkState.CLOSED
    assert channel.close_calls == 1


def test_context_manager_closes_link():
    channel = ScriptedChannel(READY)
    with PresenceLink("123", channel=channel) as link:
        assert link.ready

    assert channel.sent[-1] == (Opcode.CLOSE, {})
    assert channel.close_calls == 1


def test_strip_activity_error():
    assert strip_activity_error('child "activity" fails because [a, b]') == "a, b"
    assert strip_activity_error("something else") == "something else"


def test_strip_activity_error_drops_final_character_after_prefix():
    assert strip_activity_error('child "activity" fails because [title is required].') == "title is required]"


def test_handshake_invalid_client_id_with_null_message():
    channel = ScriptedChannel((Opcode.CLOSE, {"code": 4000, "message": None}))

    with pytest.raises(ClientIdInvalid):
        PresenceLink("nope", channel=channel)


def test_handshake_other_code_with_null_message_keeps_code():
    channel = ScriptedChannel((Opcode.CLOSE, {"code": 4004, "message": None}))

    with pytest.raises(LinkError) as excinfo:
        PresenceLink("123", channel=channel)
    assert type(excinfo.value) is LinkError
    assert (excinfo.value.code, excinfo.value.message) == (4004, "Unknown error")


def test_handshake_non_string_message_is_rendered():
    channel = ScriptedChannel((Opcode.CLOSE, {"code": 4004, "message": {"reason": "version"}}))

    with pytest.raises(LinkError) as excinfo:
        PresenceLink("123", channel=channel)
    assert excinfo.value.code == 4004
    assert excinfo.value.message == '{"reason": "version"}'


def test_activity_error_without_message_is_activity_invalid():
    link, _ = _ready_link((Opcode.FRAME, {"evt": "ERROR", "data": {"code": 4000}}))

    with pytest.raises(ActivityInvalid) as excinfo:
        link.set_activity({"details": "x"})
    assert excinfo.value.message == ""


def test_activity_error_with_null_message_keeps_code():
    link, _ = _ready_link((Opcode.FRAME, {"evt": "ERROR", "data": {"code": 5001, "message": None}}))

    with pytest.raises(LinkError) as excinfo:
        link.set_activity({"details": "x"})
    assert (excinfo.value.code, excinfo.value.message) == (5001, "Unknown error")


def test_activity_error_without_code_is_generic():
    link, _ = _ready_link((Opcode.FRAME, {"evt": "ERROR", "data": {"message": "no code"}}))

    with pytest.raises(LinkError) as excinfo:
        link.set_activity({"details": "x"})
    assert (excinfo.value.code, excinfo.value.message) == (0, "unexpected error reply")


@pytest.mark.skipif(not hasattr(socket, "AF_UNIX"), reason="needs Unix socket pairs")
def test_close_unblocks_a_reader_waiting_for_a_reply():
    client, host = socket.socketpair()
    host.sendall(encode_frame(*READY))
    channel = TransportChannel(connector=lambda endpoint, timeout: client, endpoints=["pair"])
    link = PresenceLink("123", channel=channel)
    outcome = {}

    def publish():
        try:
            link.set_activity({"details": "never answered"})
        except Exception as exc:
            outcome["error"] = exc

    worker = threading.Thread(target=publish, daemon=True)
    worker.start()
    host.settimeout(2)
    received = b""
    while b"SET_ACTIVITY" not in received:
        received += host.recv(4096)

    link.close()
    worker.join(timeout=2)

    assert not worker.is_alive()
    assert isinstance(outcome.get("error"), ChannelBroken)
    assert link.state is LinkState.CLOSED
    host.close()
