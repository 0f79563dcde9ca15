import pytest

from parley.infra.framers import create_framer
from parley.infra.length_prefix_framer import LengthPrefixFramer
from parley.infra.line_framer import LineFramer


@pytest.mark.ut
def test_create_line_framer():
    framer = create_framer("line", 128)
    assert isinstance(framer, LineFramer)
    assert framer.max_message_size == 128


@pytest.mark.ut
def test_create_length_prefixed_framer():
    framer = create_framer("length-prefixed", 256)
    assert isinstance(framer, LengthPrefixFramer)
    assert framer.max_message_size == 256


@pytest.mark.ut
def test_create_unknown_framer():
    with pytest.raises(ValueError, match="Unknown framing"):
        create_framer("xml", 128)
