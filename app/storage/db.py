# app/storage/db.py
import argparse
import getpass
from typing import Optional

import pymysql

from app.common.config import MySQLSettings, mysql_settings
from app.common.errors import StoreLookupFailure
from app.storage.store import SecretStore


def get_connection(settings: Optional[MySQLSettings] = None):
    settings = settings or mysql_settings()
    return pymysql.connect(
        host=settings.host,
        port=settings.port,
        user=settings.user,
        password=settings.password,
        database=settings.database,
        autocommit=True,
    )


def init_schema(settings: Optional[MySQLSettings] = None):
    conn = get_connection(settings)
    try:
        with conn.cursor() as cur:
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    username   VARCHAR(255) PRIMARY KEY,
                    secret     VARCHAR(255) NOT NULL
                )
                """
            )
    finally:
        conn.close()
    print("[+] users table created/verified")


def create_user(username: str, secret: str, settings: Optional[MySQLSettings] = None) -> bool:
    conn = get_connection(settings)
    try:
        with conn.cursor() as cur:
            cur.execute(
                "INSERT INTO users (username, secret) VALUES (%s, %s)",
                (username, secret),
            )
        return True
    except pymysql.MySQLError as e:
        print(f"[DB] create_user failed: {e}")
        return False
    finally:
        conn.close()


def get_secret(username: str, settings: Optional[MySQLSettings] = None) -> Optional[str]:
    conn = get_connection(settings)
    try:
        with conn.cursor() as cur:
            cur.execute("SELECT secret FROM users WHERE username = %s", (username,))
            row = cur.fetchone()
    finally:
        conn.close()
    return row[0] if row else None


class MySQLSecretStore(SecretStore):
    """
    Reads secrets from the users table.

    One connection per lookup, so concurrent handlers never share a
    pymysql connection.
    """

    def __init__(self, settings: Optional[MySQLSettings] = None):
        self.settings = settings or mysql_settings()

    def lookup(self, username: str) -> str:
        try:
            secret = get_secret(username, self.settings)
        except pymysql.MySQLError as e:
            raise StoreLookupFailure(f"secret lookup failed: {e}") from e
        if secret is None:
            raise StoreLookupFailure(f"unknown user {username!r}")
        return secret


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--init", action="store_true", help="Initialize DB schema")
    parser.add_argument("--add-user", metavar="USERNAME", help="Store a secret for USERNAME")
    args = parser.parse_args()

    if args.init:
        init_schema()
    if args.add_user:
        secret = getpass.getpass("Secret: ").strip()
        if create_user(args.add_user, secret):
            print(f"[+] User {args.add_user} added")
