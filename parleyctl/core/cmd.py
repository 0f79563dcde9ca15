import argparse
import cmd
import ssl
import sys

from parley.core.models.endpoint import Endpoint
from parley.infra.framers import FRAMERS, create_framer
from parley.infra.line_framer import DEFAULT_MAX_MESSAGE_SIZE
from parleyctl.core.client import ParleyClient
from parleyctl.core.dispatcher import CommandDispatcher
from parleyctl.core.loader import ParleyConfLoader
from parleyctl.core.ports.render import Renderer
from parleyctl.core.utils import parse_timeout, resolve_context


class ParleyCtl(cmd.Cmd):
    intro = (
        "Entering parleyctl interactive mode. Each 'send' opens a new connection. "
        "Type 'exit' or 'quit' to leave."
    )
    prompt = "parleyctl> "

    def __init__(
        self,
        dispatcher: CommandDispatcher,
        renderers: dict[str, Renderer],
        argv: list[str] | None = None,
    ) -> None:
        super().__init__()

        self._dispatcher = dispatcher
        self._argparser = self._argparse(list(renderers))
        self._args = self._argparser.parse_args(argv)
        self._renderer = renderers[self._args.output]
        self._loader = ParleyConfLoader(self._args.parleyconf)
        self.exit_code = 0

    @property
    def args(self) -> argparse.Namespace:
        return self._args

    @property
    def interactive(self) -> bool:
        return self._args.namespace is None

    def handle(self, *arguments: str, connect: bool = False) -> None:
        client: ParleyClient | None = None
        try:
            if connect:
                client = self._new_client()
            data = self._dispatcher.dispatch(
                *arguments,
                client=client,
                loader=self._loader,
                namespace=self.args
            )
            print(self._renderer.render(data))
            self.exit_code = 0
        except (OSError, ValueError, RuntimeError) as ex:
            print(f"Error: {ex}", file=sys.stderr)
            self.exit_code = 1
        finally:
            if client is not None:
                client.close()

    def do_send(self, line):
        message = line if self.interactive else getattr(self.args, "message", None)
        if message is None or (self.interactive and not message):
            print("Usage: send <message>")
            return

        self._args.message = message
        self.handle("send", connect=True)
        if self.interactive:
            self._args.message = None

    def do_config(self, line):
        if self.interactive:
            print("config command is not supported in interactive mode.")
            self._argparser.print_usage()
            return

        config_cmd = getattr(self.args, "config_cmd", None)
        if config_cmd is None:
            print(
                "Usage: config [argument <current-context|get-contexts|use-context>]\n"
                "config argument is required."
            )
            return

        self.handle("config", config_cmd)

    def do_exit(self, arg):
        return True

    def do_quit(self, arg):
        return True

    def do_EOF(self, arg):
        print()
        return True

    def emptyline(self):
        # Never resend the previous message
        return False

    def _new_client(self) -> ParleyClient:
        conf = self._loader.load() if self._loader.exists() else None
        ctx_name, ctx = resolve_context(
            conf,
            self._args.context,
            self._args.server,
        )

        endpoint = Endpoint.parse(ctx.server)
        framer = create_framer(
            self._args.framing or ctx.framing,
            self._args.max_message_size or DEFAULT_MAX_MESSAGE_SIZE,
        )

        ssl_ctx = None
        if ctx.tls:
            ssl_ctx = ssl.create_default_context(ssl.Purpose.SERVER_AUTH, cafile=ctx.tls.ca)
            if ctx.tls.cert:
                ssl_ctx.load_cert_chain(ctx.tls.cert, ctx.tls.key)

        timeout = parse_timeout(self._args.timeout or ctx.client.timeout)
        retries = ctx.client.retries if self._args.retries is None else self._args.retries
        client = ParleyClient(
            endpoint,
            framer,
            ssl_ctx=ssl_ctx,
            connect_timeout=parse_timeout(self._args.connect_timeout or ctx.client.connect_timeout),
            read_timeout=timeout,
            write_timeout=timeout,
            connect_retries=retries,
        )
        if ctx_name:
            self.prompt = f"parleyctl({ctx_name})> "
        return client

    @staticmethod
    def _argparse(outputs: list[str]) -> argparse.ArgumentParser:
        global_opts = argparse.ArgumentParser(prog="parleyctl")
        global_opts.add_argument("--parleyconf")
        global_opts.add_argument("--context")
        global_opts.add_argument("--server", help="host:port, overrides the context")
        global_opts.add_argument("--framing", choices=list(FRAMERS))
        global_opts.add_argument("--max-message-size", type=int)
        global_opts.add_argument("--timeout", help="read/write timeout, e.g. 30s, 500ms, none")
        global_opts.add_argument("--connect-timeout")
        global_opts.add_argument("--retries", type=int)
        global_opts.add_argument("-o", "--output", choices=outputs, default="text")

        sub = global_opts.add_subparsers(dest="namespace")

        cfg = sub.add_parser("config")
        cfg_sub = cfg.add_subparsers(dest="config_cmd", required=True)
        cfg_sub.add_parser("current-context")
        cfg_sub.add_parser("get-contexts")
        use_ctx = cfg_sub.add_parser("use-context")
        use_ctx.add_argument("name")

        send = sub.add_parser("send")
        send.add_argument("message")

        return global_opts
