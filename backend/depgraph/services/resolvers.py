"""
One-pass lookup tables built from the application schema.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional


@dataclass
class Resolvers:
    object_key_to_name: Dict[str, str] = field(default_factory=dict)
    connection_field_key_to_object_key: Dict[str, str] = field(default_factory=dict)


def build_resolvers(application: Mapping[str, Any]) -> Resolvers:
    """
    Record every object's display name and, for every connection field,
    the object it points at.
    """
    resolvers = Resolvers()

    for obj in application.get("objects") or []:
        if not isinstance(obj, Mapping):
            continue
        if obj.get("key") and obj.get("name"):
            resolvers.object_key_to_name[obj["key"]] = obj["name"]

        for fld in obj.get("fields") or []:
            if not isinstance(fld, Mapping) or fld.get("type") != "connection":
                continue
            target = (fld.get("relationship") or {}).get("object")
            if fld.get("key") and target:
                resolvers.connection_field_key_to_object_key[fld["key"]] = target

    return resolvers


def resolve_object_name(resolvers: Optional[Resolvers], object_key: Optional[str]) -> Optional[str]:
    if resolvers is None or not object_key:
        return None
    return resolvers.object_key_to_name.get(object_key)


def resolve_connection_target(
    resolvers: Optional[Resolvers], connection_field_key: Optional[str]
) -> Optional[str]:
    if resolvers is None or not connection_field_key:
        return None
    return resolvers.connection_field_key_to_object_key.get(connection_field_key)
