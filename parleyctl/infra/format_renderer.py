import json

import yaml

from parleyctl.core.ports.render import Renderer


class JsonRenderer(Renderer):
    def render(self, data: dict) -> str:
        return json.dumps(data, indent=2, sort_keys=False, ensure_ascii=False)


class YamlRenderer(Renderer):
    def render(self, data: dict) -> str:
        return yaml.safe_dump(data, sort_keys=False, allow_unicode=True).rstrip("\n")


class TextRenderer(Renderer):
    """Print the reply alone, like a plain socket client would."""

    def render(self, data: dict) -> str:
        if "reply" in data:
            return str(data["reply"])
        return "\n".join(f"{key}: {value}" for key, value in data.items())


RENDERERS: dict[str, Renderer] = {
    "yaml": YamlRenderer(),
    "json": JsonRenderer(),
    "text": TextRenderer(),
}
