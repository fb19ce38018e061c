import json

import yaml

from ringmap.core.ports.render import Renderer


class JsonRenderer(Renderer):
    def render(self, data: dict) -> str:
        return json.dumps(data, indent=2, sort_keys=False)


class YamlRenderer(Renderer):
    def render(self, data: dict) -> str:
        return yaml.safe_dump(data, sort_keys=False)


class TextRenderer(Renderer):
    """
    One line per host for replica lookups, one line per vnode for rings:

        192.168.0.1
        192.168.0.2

        -9223372036854775808  192.168.0.1
    """
    def render(self, data: dict) -> str:
        if "ring" in data:
            lines = [f"{entry['token']}  {entry['host']}" for entry in data["ring"]]
        else:
            lines = [replica["address"] for replica in data.get("replicas", [])]
        return "\n".join(lines)


def get_renderer(fmt: str) -> Renderer:
    renderers: dict[str, Renderer] = {
        "text": TextRenderer(),
        "json": JsonRenderer(),
        "yaml": YamlRenderer(),
    }
    try:
        return renderers[fmt]
    except KeyError:
        raise ValueError(f"Unknown output format: {fmt}") from None
