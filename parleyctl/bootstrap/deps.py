from functools import lru_cache

from parleyctl.core.cmd import ParleyCtl
from parleyctl.core.dispatcher import CommandDispatcher
from parleyctl.infra.format_renderer import RENDERERS


@lru_cache
def get_dispatcher() -> CommandDispatcher:
    return CommandDispatcher()


@lru_cache
def get_cli() -> ParleyCtl:
    return ParleyCtl(get_dispatcher(), RENDERERS)
