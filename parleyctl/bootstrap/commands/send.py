import argparse
import time

from parleyctl.bootstrap.deps import get_dispatcher
from parleyctl.core.client import ParleyClient
from parleyctl.core.loader import ParleyConfLoader

dispatcher = get_dispatcher()


@dispatcher.command("send")
def send(
    client: ParleyClient,
    _: ParleyConfLoader,
    namespace: argparse.Namespace
) -> dict:
    message = getattr(namespace, "message", None)
    if message is None:
        raise ValueError("message is required.")

    started = time.perf_counter()
    reply = client.request(message)
    elapsed = time.perf_counter() - started
    return {
        "server": str(client.endpoint),
        "request": message,
        "reply": reply,
        "elapsed_ms": round(elapsed * 1000, 3),
    }
