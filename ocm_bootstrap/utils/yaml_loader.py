import io
from typing import Any

from ruamel.yaml import YAML


def get_yaml_instance() -> YAML:
    yaml = YAML(typ="rt")
    yaml.default_flow_style = False
    yaml.explicit_start = False
    yaml.preserve_quotes = True
    yaml.width = 4096
    yaml.indent(mapping=2, sequence=2, offset=0)
    return yaml


def _as_text(data: bytes | str) -> str:
    if isinstance(data, bytes):
        return data.decode("utf-8")
    return data


def load_yaml(data: bytes | str) -> Any:
    return get_yaml_instance().load(_as_text(data))


def dump_yaml(data: Any) -> str:
    stream = io.StringIO()
    get_yaml_instance().dump(data, stream)
    return stream.getvalue()


def dump_all_yaml(documents: list[Any]) -> str:
    yaml = get_yaml_instance()
    yaml.explicit_start = True
    stream = io.StringIO()
    yaml.dump_all(documents, stream)
    return stream.getvalue()
