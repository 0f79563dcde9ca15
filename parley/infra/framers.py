from parley.core.ports.framer import Framer
from parley.infra.length_prefix_framer import LengthPrefixFramer
from parley.infra.line_framer import LineFramer

FRAMERS: dict[str, type[LineFramer] | type[LengthPrefixFramer]] = {
    LineFramer.name: LineFramer,
    LengthPrefixFramer.name: LengthPrefixFramer,
}


def create_framer(name: str, max_message_size: int) -> Framer:
    try:
        cls = FRAMERS[name]
    except KeyError:
        raise ValueError(
            f"Unknown framing '{name}', expected one of: {', '.join(FRAMERS)}"
        ) from None
    return cls(max_message_size=max_message_size)
