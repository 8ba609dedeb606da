"""Client implementation: plain TCP; proves knowledge of the password without sending it."""

import getpass
import socket
import sys
from typing import BinaryIO, Tuple

from app.common import config, framing, protocol, utils
from app.common.errors import AuthFailure, ProtocolError, ProtocolViolation
from app.crypto.proof import compute_proof


def prompt_credentials() -> Tuple[str, str]:
    username = input("Enter username: ").strip()
    password = getpass.getpass("Enter password: ").strip()
    return username, password


def expect(f: BinaryIO, kind: str) -> protocol.Message:
    msg = framing.recv_message(f)
    if msg.kind != kind:
        raise ProtocolViolation(f"expected {kind} from server, got {msg.kind}")
    return msg


def await_ack(f: BinaryIO) -> None:
    """The server opens every connection with Result(Success)."""
    ack = expect(f, protocol.RESULT)
    if ack.outcome != protocol.SUCCESS:
        raise ProtocolViolation("server refused the connection")


def login(f: BinaryIO, username: str, password: str, raise_on_fail: bool = False) -> bool:
    """
    Client side of the handshake, after the connection ack:
      - exchange tokens (ours first, then request the server's)
      - announce the username
      - send SHA256(client_token || server_token || password)

    Returns True on Result(Success). A dropped connection raises FramingError.
    """
    client_token = utils.gen_token()
    framing.send_message(f, protocol.send_token(client_token))

    framing.send_message(f, protocol.request_token())
    server_token = expect(f, protocol.SEND_TOKEN).body_value("token")

    framing.send_message(f, protocol.username(username))

    client_hash = compute_proof(client_token, server_token, password)
    framing.send_message(f, protocol.login_request(client_hash))

    outcome = expect(f, protocol.RESULT).outcome
    if outcome == protocol.SUCCESS:
        return True
    if raise_on_fail:
        raise AuthFailure(f"login rejected for {username!r}")
    return False


# ============ Main ============

def main() -> int:
    settings = config.client_settings()

    print(f"[+] Connecting to server at {settings.host}:{settings.port} ...")
    try:
        sock = socket.create_connection((settings.host, settings.port))
    except OSError as e:
        print(f"[!] Unable to connect to server: {e}")
        return 1

    with sock:
        f = sock.makefile("rwb")
        try:
            await_ack(f)
            print("[+] Connected!\n")
            username, password = prompt_credentials()
            ok = login(f, username, password)
        except ProtocolError as e:
            # server dropped us or answered out of order
            print(f"[!] {e}")
            ok = False
        finally:
            f.close()

    print("Login Successful!" if ok else "Login failed!")
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
