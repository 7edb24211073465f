"""
CustomResourceDefinition for the Task resource.

The OpenAPI schema is derived from the pydantic models, rewritten into the
structural form the API server accepts: no ``$ref``, no ``null`` types, and
``exclusiveMinimum`` as a boolean.

Usage: ``python -m packages.tasks.crd | kubectl apply -f -``
"""

from typing import Any, Dict, Optional

import yaml

from common.core.config import get_settings
from packages.tasks.models.domain.task import TASK_KIND, TaskSpec, TaskStatus

_DROPPED_KEYS = {"title", "$defs"}


def _structural(schema: Dict[str, Any], defs: Dict[str, Any]) -> Dict[str, Any]:
    if "$ref" in schema:
        ref = schema["$ref"].rsplit("/", 1)[-1]
        merged = {**defs[ref], **{k: v for k, v in schema.items() if k != "$ref"}}
        return _structural(merged, defs)

    if "allOf" in schema and len(schema["allOf"]) == 1:
        rest = {k: v for k, v in schema.items() if k != "allOf"}
        return _structural({**schema["allOf"][0], **rest}, defs)

    if "anyOf" in schema:
        variants = [v for v in schema["anyOf"] if v.get("type") != "null"]
        rest = {k: v for k, v in schema.items() if k != "anyOf"}
        if len(variants) == 1:
            converted = _structural({**variants[0], **rest}, defs)
            converted["nullable"] = True
            return converted

    converted = {}
    for key, value in schema.items():
        if key in _DROPPED_KEYS:
            continue
        if key == "properties":
            converted[key] = {
                name: _structural(prop, defs) for name, prop in value.items()
            }
        elif key == "items":
            converted[key] = _structural(value, defs)
        elif key == "exclusiveMinimum":
            converted["minimum"] = value
            converted["exclusiveMinimum"] = True
        else:
            converted[key] = value
    return converted


def model_schema(model) -> Dict[str, Any]:
    schema = model.model_json_schema(by_alias=True)
    return _structural(schema, schema.get("$defs", {}))


def task_crd(
    group: Optional[str] = None,
    version: Optional[str] = None,
    plural: Optional[str] = None,
) -> Dict[str, Any]:
    """Build the CustomResourceDefinition manifest for Tasks."""
    settings = get_settings()
    group = group or settings.task_group
    version = version or settings.task_version
    plural = plural or settings.task_plural

    return {
        "apiVersion": "apiextensions.k8s.io/v1",
        "kind": "CustomResourceDefinition",
        "metadata": {"name": f"{plural}.{group}"},
        "spec": {
            "group": group,
            "names": {
                "kind": TASK_KIND,
                "plural": plural,
                "singular": TASK_KIND.lower(),
            },
            "scope": "Namespaced",
            "versions": [
                {
                    "name": version,
                    "served": True,
                    "storage": True,
                    "schema": {
                        "openAPIV3Schema": {
                            "type": "object",
                            "required": ["spec"],
                            "properties": {
                                "spec": model_schema(TaskSpec),
                                "status": {
                                    **model_schema(TaskStatus),
                                    "nullable": True,
                                },
                            },
                        }
                    },
                    "subresources": {"status": {}},
                }
            ],
        },
    }


if __name__ == "__main__":
    print(yaml.safe_dump(task_crd(), sort_keys=False), end="")
