from pathlib import Path
from typing import Any, TypeVar, overload

import yaml
from pydantic import TypeAdapter, ValidationError

T = TypeVar("T")


# -------------------------------
# Raw YAML reader (single source of truth)
# -------------------------------


def read_yaml(path: Path | str) -> Any:
    """Read a YAML (or JSON) document, raising with the path in the message on failure."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"File not found: {p}")

    try:
        text = p.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ValueError(f"Unable to decode UTF-8 in {p}: {e}") from e

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {p}: {e}") from e

    if data is None:
        raise ValueError(f"Empty YAML file: {p}")

    return data


# -------------------------------
# Typed YAML loader
# -------------------------------


@overload
def load_yaml_typed(path: Path | str, *, adapter: TypeAdapter[T]) -> T: ...


@overload
def load_yaml_typed(path: Path | str, *, model: type[T]) -> T: ...


def load_yaml_typed(
    path: Path | str,
    *,
    adapter: TypeAdapter[T] | None = None,
    model: type[T] | None = None,
) -> T:
    """Read YAML and validate it into a typed object using Pydantic v2.

    Exactly one of {adapter, model} must be supplied.

    Example (single model):
        load_yaml_typed("doctrine/capacities.yaml", model=Capacities)

    Example (list of items):
        load_yaml_typed("doctrine/racks.yaml", adapter=TypeAdapter(list[Rack]))
    """
    if (adapter is None) == (model is None):
        raise ValueError("Provide exactly one of 'adapter' or 'model'.")

    data = read_yaml(path)

    try:
        if adapter is not None:
            return adapter.validate_python(data)
        return TypeAdapter(model).validate_python(data)  # type: ignore[arg-type]
    except ValidationError as e:
        # Normalize error so callers see the file path in the message
        raise ValueError(f"Invalid structure in {path}: {e}") from e

