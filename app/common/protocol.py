# app/common/protocol.py
from typing import Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, model_validator

from app.common import utils

SEND_TOKEN = "SendToken"
REQUEST_TOKEN = "RequestToken"
USERNAME = "Username"
LOGIN_REQUEST = "LoginRequest"
RESULT = "Result"

SUCCESS = "Success"
FAIL = "Fail"

# body key required by each payload-carrying variant
BODY_KEYS = {
    SEND_TOKEN: "token",
    USERNAME: "username",
    LOGIN_REQUEST: "client_hash",
}


class ResultTag(BaseModel):
    """Tagged variant with a nested value: {"Result": "Success"}."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    Result: Literal["Success", "Fail"]


class Message(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    header: Dict[str, str]
    msg_type: Union[
        Literal["SendToken", "RequestToken", "Username", "LoginRequest"],
        ResultTag,
    ]
    body: Optional[Dict[str, str]] = None

    @model_validator(mode="after")
    def _check_body(self):
        key = BODY_KEYS.get(self.kind)
        if key is None:
            if self.body is not None:
                raise ValueError(f"{self.kind} does not carry a body")
        elif not self.body or key not in self.body:
            raise ValueError(f"{self.kind} requires body key '{key}'")
        return self

    @property
    def kind(self) -> str:
        if isinstance(self.msg_type, ResultTag):
            return RESULT
        return self.msg_type

    @property
    def outcome(self) -> Optional[str]:
        """Success/Fail for Result messages, None for everything else."""
        if isinstance(self.msg_type, ResultTag):
            return self.msg_type.Result
        return None

    def body_value(self, key: str) -> str:
        return self.body[key]


# ============ Builders ============

def _header() -> Dict[str, str]:
    return {"timestamp": utils.timestamp()}


def send_token(token: str) -> Message:
    return Message(header=_header(), msg_type=SEND_TOKEN, body={"token": token})


def request_token() -> Message:
    return Message(header=_header(), msg_type=REQUEST_TOKEN)


def username(name: str) -> Message:
    return Message(header=_header(), msg_type=USERNAME, body={"username": name})


def login_request(client_hash: str) -> Message:
    return Message(
        header=_header(),
        msg_type=LOGIN_REQUEST,
        body={"client_hash": client_hash},
    )


def result(success: bool) -> Message:
    tag = ResultTag(Result=SUCCESS if success else FAIL)
    return Message(header=_header(), msg_type=tag)
