"""Free TCP port allocation."""

import socket


def allocate_port(host: str = "127.0.0.1") -> int:
    """Return a TCP port that was free on ``host`` at the time of the call.

    Another process may grab the port before the caller binds it.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind((host, 0))
        port: int = sock.getsockname()[1]
    return port
