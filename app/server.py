"""Server implementation: plain TCP, one thread per connection."""

import errno
import socket
import sys
import threading
from typing import Optional, Set, Tuple

import pymysql

from app.common import config, framing
from app.common.errors import ProtocolError
from app.handshake import HandshakeHandler, Session
from app.storage import db
from app.storage.store import SecretStore

ACCEPT_POLL_INTERVAL = 0.5
ACCEPT_BACKOFF = 0.1

# out of descriptors or buffers: accept again after a short pause
RESOURCE_ERRNOS = {errno.EMFILE, errno.ENFILE, errno.ENOBUFS, errno.ENOMEM}


class AuthServer:
    """
    Listener plus one isolated handler thread per accepted connection.

    A failure in one handler (bad frame, illegal message, peer gone, read
    deadline hit) closes that connection only. The accept loop never waits
    on a client's handshake.
    """

    def __init__(
        self,
        store: SecretStore,
        host: str = "0.0.0.0",
        port: int = config.DEFAULT_PORT,
        read_timeout: Optional[float] = None,
        max_connections: int = 0,
    ):
        self.store = store
        self.host = host
        self.port = port
        self.read_timeout = read_timeout
        self.max_connections = max_connections

        self._sock: Optional[socket.socket] = None
        self._accept_thread: Optional[threading.Thread] = None
        self._stopping = threading.Event()
        self._slots = threading.BoundedSemaphore(max_connections) if max_connections else None
        self._workers: Set[threading.Thread] = set()
        self._workers_lock = threading.Lock()

    @property
    def address(self) -> Tuple[str, int]:
        if self._sock is None:
            raise RuntimeError("server is not started")
        return self._sock.getsockname()[:2]

    # ============ Lifecycle ============

    def start(self) -> None:
        """Bind and listen; raises OSError if the address is unavailable."""
        if self._sock is not None:
            raise RuntimeError("server already started")

        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.port))
            sock.listen(5)
        except OSError:
            sock.close()
            raise
        sock.settimeout(ACCEPT_POLL_INTERVAL)

        self._sock = sock
        self._stopping.clear()
        self._accept_thread = threading.Thread(
            target=self._accept_loop, name="auth-accept", daemon=True
        )
        self._accept_thread.start()

        host, port = self.address
        print(f"[+] Auth server listening on {host}:{port} ...")

    def serve_forever(self) -> None:
        if self._accept_thread is None:
            self.start()
        try:
            while self._accept_thread.is_alive():
                self._accept_thread.join(ACCEPT_POLL_INTERVAL)
        except KeyboardInterrupt:
            print("\n[*] Shutting down server...")
        finally:
            self.stop()

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stopping.set()
        if self._accept_thread is not None:
            self._accept_thread.join(timeout)
            self._accept_thread = None
        if self._sock is not None:
            self._sock.close()
            self._sock = None

        with self._workers_lock:
            workers = list(self._workers)
        for worker in workers:
            worker.join(timeout)

    # ============ Accept loop ============

    def _accept_loop(self) -> None:
        while not self._stopping.is_set():
            try:
                conn, addr = self._sock.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._stopping.is_set():
                    break
                # a failed accept belongs to one connection, not the listener
                print(f"[!] Accept failed: {e}")
                if e.errno in RESOURCE_ERRNOS:
                    self._stopping.wait(ACCEPT_BACKOFF)
                continue

            if self._slots is not None and not self._slots.acquire(blocking=False):
                print(f"[!] Connection limit reached, dropping {addr}")
                conn.close()
                continue

            print(f"[+] New connection from {addr}")
            worker = threading.Thread(
                target=self._handle_client,
                args=(conn, addr),
                name=f"auth-conn-{addr[0]}:{addr[1]}",
                daemon=True,
            )
            with self._workers_lock:
                self._workers.add(worker)
            worker.start()

    def _handle_client(self, conn: socket.socket, addr) -> None:
        try:
            with conn:
                # replaces the listener's poll timeout with the frame deadline
                stream = framing.SocketStream(conn, self.read_timeout)
                try:
                    handler = HandshakeHandler(stream, self.store, peer=addr, session=Session())
                    handler.run()
                except ProtocolError as e:
                    print(f"[!] Error handling client {addr}: {e}")
                except OSError as e:
                    print(f"[!] Connection error with {addr}: {e}")
            print(f"[+] Connection {addr} closed.")
        finally:
            if self._slots is not None:
                self._slots.release()
            with self._workers_lock:
                self._workers.discard(threading.current_thread())


# ============ Main Server Loop ============

def main() -> int:
    settings = config.server_settings()

    # Ensure DB schema exists (users table)
    try:
        db.init_schema()
    except pymysql.MySQLError as e:
        print(f"[!] Secret store unavailable: {e}")
        return 1
    store = db.MySQLSecretStore()

    server = AuthServer(
        store,
        host=settings.host,
        port=settings.port,
        read_timeout=settings.deadline,
        max_connections=settings.max_connections,
    )
    try:
        server.start()
    except OSError as e:
        print(f"[!] Unable to bind {settings.host}:{settings.port}: {e}")
        return 1

    server.serve_forever()
    return 0


if __name__ == "__main__":
    sys.exit(main())
