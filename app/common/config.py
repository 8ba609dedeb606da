# app/common/config.py
import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

load_dotenv()

DEFAULT_PORT = 6969


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = Field(DEFAULT_PORT, ge=0, le=65535)
    read_timeout: float = Field(30.0, ge=0)  # seconds per frame, 0 disables
    max_connections: int = Field(0, ge=0)    # 0 = unbounded

    @property
    def deadline(self) -> Optional[float]:
        return self.read_timeout or None


class ClientSettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = Field(DEFAULT_PORT, ge=1, le=65535)


class MySQLSettings(BaseModel):
    host: str = "127.0.0.1"
    port: int = 3306
    user: str = "authuser"
    password: str = ""
    database: str = "authserver"


def server_settings() -> ServerSettings:
    return ServerSettings(
        host=os.getenv("AUTH_HOST", "0.0.0.0"),
        port=os.getenv("AUTH_PORT", str(DEFAULT_PORT)),
        read_timeout=os.getenv("AUTH_READ_TIMEOUT", "30"),
        max_connections=os.getenv("AUTH_MAX_CONNECTIONS", "0"),
    )


def client_settings() -> ClientSettings:
    return ClientSettings(
        host=os.getenv("SERVER_HOST", "127.0.0.1"),
        port=os.getenv("SERVER_PORT", str(DEFAULT_PORT)),
    )


def mysql_settings() -> MySQLSettings:
    return MySQLSettings(
        host=os.getenv("MYSQL_HOST", "127.0.0.1"),
        port=os.getenv("MYSQL_PORT", "3306"),
        user=os.getenv("MYSQL_USER", "authuser"),
        password=os.getenv("MYSQL_PASSWORD", ""),
        database=os.getenv("MYSQL_DB", "authserver"),
    )
