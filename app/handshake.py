"""Server side of the challenge-response login, one handler per connection."""

from enum import Enum
from typing import BinaryIO, Optional

from app.common import framing, protocol, utils
from app.common.errors import ProtocolViolation, StoreLookupFailure
from app.common.protocol import Message
from app.crypto import proof
from app.storage.store import SecretStore


class HandshakeState(str, Enum):
    CONNECTED = "connected"
    AWAITING_MESSAGES = "awaiting_messages"
    TOKEN_RECEIVED = "token_received"
    USERNAME_RECEIVED = "username_received"
    LOGIN_REQUESTED = "login_requested"
    RESOLVED = "resolved"
    CLOSED = "closed"


class Session:
    """Per-connection accumulator of the fields needed to check one proof."""

    def __init__(self, server_token: Optional[str] = None):
        self.client_token = ""
        self.server_token = server_token or utils.gen_token()
        self.username = ""
        self.client_hash = ""
        self.authenticated = False
        self.state = HandshakeState.CONNECTED


def verify_login(session: Session, store: SecretStore) -> bool:
    """
    Fail closed: any missing field, unknown user or store error is a plain
    failure, and missing fields never reach the store.
    """
    if not (session.username and session.client_token and session.client_hash):
        return False

    try:
        secret = store.lookup(session.username)
    except StoreLookupFailure as e:
        print(f"[*] {e}")
        return False

    expected = proof.compute_proof(session.client_token, session.server_token, secret)
    return proof.proofs_match(expected, session.client_hash)


class HandshakeHandler:
    def __init__(
        self,
        stream: BinaryIO,
        store: SecretStore,
        peer=None,
        session: Optional[Session] = None,
    ):
        self.stream = stream
        self.store = store
        self.peer = peer
        self.session = session or Session()

    def run(self) -> bool:
        """
        Drive the handshake until the login is resolved.

        Returns whether the client authenticated. FramingError, DecodingError
        and ProtocolViolation propagate; each ends this connection only.
        """
        try:
            # liveness ack for the transport connection, not a login decision
            framing.send_message(self.stream, protocol.result(True))
            self.session.state = HandshakeState.AWAITING_MESSAGES

            while self.session.state is not HandshakeState.RESOLVED:
                message = framing.recv_message(self.stream)
                reply = self.dispatch(message)
                if reply is not None:
                    framing.send_message(self.stream, reply)

            return self.session.authenticated
        finally:
            self.session.state = HandshakeState.CLOSED

    def dispatch(self, message: Message) -> Optional[Message]:
        """Apply one client message to the session; return the reply, if any."""
        session = self.session
        if session.state in (HandshakeState.RESOLVED, HandshakeState.CLOSED):
            raise ProtocolViolation(f"{message.kind} received after login was resolved")

        kind = message.kind

        if kind == protocol.SEND_TOKEN:
            session.client_token = message.body_value("token")
            session.state = HandshakeState.TOKEN_RECEIVED
            return None

        if kind == protocol.REQUEST_TOKEN:
            return protocol.send_token(session.server_token)

        if kind == protocol.USERNAME:
            session.username = message.body_value("username")
            session.state = HandshakeState.USERNAME_RECEIVED
            return None

        if kind == protocol.LOGIN_REQUEST:
            session.client_hash = message.body_value("client_hash")
            session.state = HandshakeState.LOGIN_REQUESTED

            session.authenticated = verify_login(session, self.store)
            session.state = HandshakeState.RESOLVED
            if session.authenticated:
                print(f"[+] User {session.username} authenticated ({self.peer})")
            else:
                print(f"[!] Login failed ({self.peer})")
            return protocol.result(session.authenticated)

        raise ProtocolViolation(f"server cannot accept a {kind} message")
