"""YAML serialization helpers built on ruamel.yaml."""

from io import StringIO
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML


def new_yaml() -> YAML:
    """Create a YAML instance with the block layout used for generated files."""
    yaml = YAML()
    yaml.default_flow_style = False
    yaml.indent(mapping=2, sequence=2, offset=0)
    return yaml


def dump_documents(*documents: Any) -> str:
    """Serialize one or more documents, separated by '---' when several."""
    stream = StringIO()
    yaml = new_yaml()
    if len(documents) == 1:
        yaml.dump(documents[0], stream)
    else:
        yaml.explicit_start = True
        yaml.dump_all(list(documents), stream)
    return stream.getvalue()


def write_document(data: Any, path: Path) -> Path:
    """Write a single document to path, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        new_yaml().dump(data, f)
    return path
