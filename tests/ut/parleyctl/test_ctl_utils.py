import pytest

from parleyctl.core.model import ContextConfig, ParleyConf
from parleyctl.core.utils import DEFAULT_SERVER, parse_timeout, resolve_context


@pytest.mark.ut
@pytest.mark.parametrize("raw, expected", [
    ("30s", 30.0),
    ("1.5s", 1.5),
    ("500ms", 0.5),
    ("2", 2.0),
    (" 10S ", 10.0),
    ("none", None),
    ("", None),
    ("0", None),
    ("0s", None),
])
def test_parse_timeout(raw, expected):
    assert parse_timeout(raw) == expected


@pytest.mark.ut
def test_parse_timeout_invalid():
    with pytest.raises(ValueError):
        parse_timeout("soon")


@pytest.fixture
def conf():
    return ParleyConf(
        current_context="local",
        contexts={
            "local": ContextConfig(server="127.0.0.1:5000"),
            "bank": ContextConfig(server="bank.example:6000", framing="length-prefixed"),
        },
    )


@pytest.mark.ut
def test_resolve_without_conf():
    name, ctx = resolve_context(None, None, None)
    assert name == ""
    assert ctx.server == DEFAULT_SERVER


@pytest.mark.ut
def test_resolve_without_conf_with_server_override():
    _, ctx = resolve_context(None, None, "10.0.0.1:7000")
    assert ctx.server == "10.0.0.1:7000"


@pytest.mark.ut
def test_resolve_current_context(conf):
    name, ctx = resolve_context(conf, None, None)
    assert name == "local"
    assert ctx.server == "127.0.0.1:5000"


@pytest.mark.ut
def test_resolve_context_override(conf):
    name, ctx = resolve_context(conf, "bank", None)
    assert name == "bank"
    assert ctx.framing == "length-prefixed"


@pytest.mark.ut
def test_resolve_server_override_keeps_context(conf):
    name, ctx = resolve_context(conf, "bank", "localhost:7000")
    assert name == "bank"
    assert ctx.server == "localhost:7000"
    assert ctx.framing == "length-prefixed"
    # the loaded conf is left untouched
    assert conf.contexts["bank"].server == "bank.example:6000"


@pytest.mark.ut
def test_resolve_unknown_context_falls_back(conf):
    name, ctx = resolve_context(conf, "missing", None)
    assert name == ""
    assert ctx.server == DEFAULT_SERVER
