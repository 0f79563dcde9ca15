import asyncio
import socket


def _to_host_port(info: object) -> tuple[str, int] | None:
    if isinstance(info, (tuple, list)) and len(info) >= 2:
        host, port = info[0], info[1]
        if isinstance(host, str) and isinstance(port, int):
            return host, port
    return None


def get_remote_addr(transport: asyncio.BaseTransport) -> tuple[str, int] | None:
    sock: socket.socket | None = transport.get_extra_info("socket")
    if sock is not None:
        try:
            return _to_host_port(sock.getpeername())
        except OSError:
            return None

    return _to_host_port(transport.get_extra_info("peername"))


def format_addr(addr: tuple[str, int] | None) -> str:
    if addr is None:
        return "unknown"
    host, port = addr
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"
