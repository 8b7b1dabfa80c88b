"""HTTP routers, one module per area of the dashboard."""

from typing import Any

from pydantic import BaseModel


def dump(model: BaseModel) -> dict[str, Any]:
    """JSON-ready dict of a model, camelCase where the model defines it."""
    return model.model_dump(mode="json", by_alias=True)


def dump_all(models: list[BaseModel]) -> list[dict[str, Any]]:
    return [dump(m) for m in models]
