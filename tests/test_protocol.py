import re

import pytest
from pydantic import ValidationError

from app.common import protocol, utils


def test_builders_stamp_timestamp_header():
    msg = protocol.request_token()
    assert re.fullmatch(r"\d{2}/\d{2}/\d{4} \d{2}:\d{2}:\d{2}", msg.header["timestamp"])


def test_payload_free_variants_have_no_body():
    assert protocol.request_token().body is None
    assert protocol.result(True).body is None


def test_result_outcome():
    assert protocol.result(True).kind == protocol.RESULT
    assert protocol.result(True).outcome == protocol.SUCCESS
    assert protocol.result(False).outcome == protocol.FAIL
    assert protocol.username("alice").outcome is None


@pytest.mark.parametrize(
    "msg_type, body",
    [
        ("SendToken", None),
        ("Username", {}),
        ("LoginRequest", {"token": "abc"}),
        ("RequestToken", {"token": "abc"}),
        ({"Result": "Success"}, {"note": "ok"}),
    ],
)
def test_body_must_match_variant(msg_type, body):
    with pytest.raises(ValidationError):
        protocol.Message(header={"timestamp": utils.timestamp()}, msg_type=msg_type, body=body)


def test_unknown_variant_rejected():
    with pytest.raises(ValidationError):
        protocol.Message(header={}, msg_type="Logout")


def test_messages_are_immutable():
    msg = protocol.username("alice")
    with pytest.raises(ValidationError):
        msg.body = {"username": "mallory"}


def test_gen_token_is_alphanumeric_and_fresh():
    tokens = {utils.gen_token() for _ in range(50)}
    assert len(tokens) > 1
    for token in tokens:
        assert len(token) == utils.TOKEN_LENGTH
        assert token.isalnum() and token.isascii()
