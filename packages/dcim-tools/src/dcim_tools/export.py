from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel


def _plain(obj: Any) -> Any:
    if isinstance(obj, BaseModel):
        return obj.model_dump()
    if isinstance(obj, dict):
        return {str(k) if not isinstance(k, tuple) else "/".join(k): _plain(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_plain(v) for v in obj]
    return obj


def export_yaml(obj: Any, path: Path | str) -> Path:
    """Dump a report (pydantic models, or mappings/lists of them) to a YAML file."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with open(p, "w", encoding="utf-8") as f:
        yaml.dump(_plain(obj), f, default_flow_style=False, sort_keys=True, allow_unicode=True)
    return p
