import argparse

from parleyctl.bootstrap.deps import get_dispatcher
from parleyctl.core.client import ParleyClient
from parleyctl.core.loader import ParleyConfLoader

dispatcher = get_dispatcher()


@dispatcher.command("config", "current-context")
def cmd_current_context(
    client: ParleyClient | None,
    loader: ParleyConfLoader,
    namespace: argparse.Namespace
) -> dict:
    _ = client, namespace
    conf = loader.load()
    return {"current_context": conf.current_context}


@dispatcher.command("config", "get-contexts")
def cmd_get_contexts(
    client: ParleyClient | None,
    loader: ParleyConfLoader,
    namespace: argparse.Namespace
) -> dict:
    _ = client, namespace
    conf = loader.load()
    return {
        "contexts": [
            {"name": name, "server": ctx.server, "framing": ctx.framing}
            for name, ctx in conf.contexts.items()
        ]
    }


@dispatcher.command("config", "use-context")
def cmd_use_context(
    client: ParleyClient | None,
    loader: ParleyConfLoader,
    namespace: argparse.Namespace
) -> dict:
    _ = client
    name = getattr(namespace, "name", None)
    if not name:
        raise ValueError("context name is required.")

    conf = loader.load()
    if name not in conf.contexts:
        raise ValueError(f"Unknown context: {name}")

    conf.current_context = name
    loader.save(conf)
    return {"message": f"Switched to context '{name}'"}
