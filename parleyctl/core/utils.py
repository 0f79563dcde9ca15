import logging

from parleyctl.core.model import ParleyConf, ContextConfig

DEFAULT_SERVER = "localhost:5000"

_logger = logging.getLogger("parleyctl.utils")


def parse_timeout(s: str) -> float | None:
    # Very simple parser: supports "<number>s", "<number>ms" or "none"; 0 disables
    s = s.strip().lower()
    if s in ("", "none"):
        return None
    if s.endswith("ms"):
        value = float(s[:-2]) / 1000.0
    elif s.endswith("s"):
        value = float(s[:-1])
    else:
        value = float(s)
    return value if value > 0 else None


def fallback_context(server_override: str | None) -> ContextConfig:
    return ContextConfig(server=server_override or DEFAULT_SERVER)


def resolve_context(
    conf: ParleyConf | None,
    context_override: str | None,
    server_override: str | None
) -> tuple[str, ContextConfig]:
    if conf is None:
        return "", fallback_context(server_override)

    ctx_name = context_override or conf.current_context
    if ctx_name not in conf.contexts:
        _logger.warning(f"Unknown context '{ctx_name}', using fallback context.")
        return "", fallback_context(server_override)

    ctx = conf.contexts[ctx_name]
    if server_override:
        # shallow copy
        ctx = ContextConfig(
            server=server_override,
            client=ctx.client,
            framing=ctx.framing,
            tls=ctx.tls,
        )

    return ctx_name, ctx
