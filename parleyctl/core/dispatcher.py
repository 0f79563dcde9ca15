import argparse
import functools
from typing import Any, Protocol

from parleyctl.core.client import ParleyClient
from parleyctl.core.loader import ParleyConfLoader


class CommandHandler(Protocol):
    def __call__(
        self,
        client: ParleyClient | None,
        loader: ParleyConfLoader,
        namespace: argparse.Namespace,
    ) -> dict[str, Any]:
        ...


class CommandDispatcher:
    def __init__(self) -> None:
        self._commands: dict[tuple[str, ...], CommandHandler] = {}

    def dispatch(
        self,
        *arguments: str,
        client: ParleyClient | None,
        loader: ParleyConfLoader,
        namespace: argparse.Namespace
    ) -> dict[str, Any]:
        command = self._commands.get(arguments)
        if command is None:
            raise RuntimeError(f"Unknown '{' '.join(arguments)}' command")
        return command(client, loader, namespace)

    def command(self, *arguments: str):
        def decorator(func: CommandHandler):
            if arguments in self._commands:
                raise RuntimeError(f"Command already registered: '{' '.join(arguments)}'")

            @functools.wraps(func)
            def wrapper(
                client: ParleyClient | None,
                loader: ParleyConfLoader,
                namespace: argparse.Namespace,
            ) -> dict[str, Any]:
                return func(client, loader, namespace)

            self._commands[arguments] = wrapper

            return wrapper

        return decorator
