"""
Core domain models for the schema dependency graph.
"""
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, model_validator


class EntityKind(str, Enum):
    OBJECT = "object"
    FIELD = "field"
    VIEW = "view"
    SCENE = "scene"


class EdgeType(str, Enum):
    CONTAINS = "contains"        # structural ownership (object->field, scene->view)
    USES = "uses"                # generic reference
    DISPLAYS = "displays"        # field shown by a view
    FILTERS_BY = "filtersBy"     # view source filter -> field
    SORTS_BY = "sortsBy"         # object/view sort -> field
    DERIVES_FROM = "derivesFrom" # formula/rollup/concatenation -> input field
    CONNECTS_TO = "connectsTo"   # relationship dependency


class RuleCategory(str, Enum):
    DISPLAY = "display"
    RECORD = "record"
    EMAIL = "email"


# Keys every edge of a given type must carry in its details bag.
# Types not listed take an open bag.
REQUIRED_DETAIL_KEYS: Dict[EdgeType, tuple] = {
    EdgeType.FILTERS_BY: ("operator",),
    EdgeType.SORTS_BY: ("order",),
}


class NodeRef(BaseModel):
    """Typed reference to a schema entity.

    Identity is ``(kind, key)``. ``name`` is a display label only and never
    takes part in equality or hashing.
    """
    kind: EntityKind
    key: Optional[str] = None
    name: Optional[str] = None

    class Config:
        frozen = True

    @property
    def node_id(self) -> str:
        return node_id(self.kind, self.key)

    def __eq__(self, other) -> bool:
        if not isinstance(other, NodeRef):
            return False
        return self.node_id == other.node_id

    def __hash__(self) -> int:
        return hash(self.node_id)

    def __str__(self) -> str:
        return self.node_id


class Edge(BaseModel):
    """A directed, typed relationship between two nodes.

    ``location_path`` is a breadcrumb back into the source document, e.g.
    ``scenes[2].views[0].source.sort[1].field``. It is provenance only.
    """
    from_: NodeRef = Field(alias="from")
    to: NodeRef
    type: EdgeType
    location_path: str = ""
    details: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def _check_details(self) -> "Edge":
        for key in REQUIRED_DETAIL_KEYS.get(self.type, ()):
            if key not in self.details:
                raise ValueError(f"{self.type.value} edge requires '{key}' in details")
        return self


def node_id(kind: EntityKind, key: Optional[str]) -> str:
    """Canonical identity string, e.g. ``field:field_12``."""
    kind_value = kind.value if isinstance(kind, EntityKind) else str(kind)
    return f"{kind_value}:{key}"
