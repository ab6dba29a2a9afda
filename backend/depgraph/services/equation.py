"""
Lightweight parser for formula equation strings.

If the field carries ``referenced_fields`` metadata it is treated as ground
truth. Otherwise tokens like ``field_123`` and ``object_45.field_67`` are
pulled out of the raw text.
"""
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

FIELD_PATTERN = re.compile(r"field_\d+")
OBJECT_FIELD_PATTERN = re.compile(r"(object_\d+)\.(field_\d+)")


@dataclass(frozen=True)
class EquationReference:
    field_key: str
    object_key: Optional[str] = None


@dataclass
class EquationParseResult:
    referenced: List[EquationReference] = field(default_factory=list)


def parse_equation(
    equation: Optional[str],
    referenced_fields: Optional[Mapping[str, Dict[str, Any]]] = None,
) -> EquationParseResult:
    """
    Extract the fields an equation refers to, in first-seen order.

    The text is scanned twice, for ``object.field`` matches and for bare
    ``field_N`` matches. A bare match lying inside a qualified match is part
    of it and is dropped, so ``object_5.field_2`` yields one reference, not
    two; a bare occurrence elsewhere in the text is kept as its own
    reference. Results are ordered by position in the text, not qualified
    matches first.

    ``referenced_fields`` metadata, when present, is authoritative even if
    it is empty.
    Never raises: text with no recognisable tokens yields no references.
    """
    if isinstance(referenced_fields, Mapping):
        refs: List[EquationReference] = []
        for entry in referenced_fields.values():
            if not isinstance(entry, Mapping) or not entry.get("field_key"):
                continue
            refs.append(
                EquationReference(
                    field_key=entry["field_key"],
                    object_key=entry.get("object_key"),
                )
            )
        return EquationParseResult(referenced=_dedupe(refs))

    if not isinstance(equation, str):
        return EquationParseResult()

    # (start, end, ref) per match
    qualified: List[Tuple[int, int, EquationReference]] = [
        (m.start(), m.end(), EquationReference(field_key=m.group(2), object_key=m.group(1)))
        for m in OBJECT_FIELD_PATTERN.finditer(equation)
    ]
    bare: List[Tuple[int, int, EquationReference]] = [
        (m.start(), m.end(), EquationReference(field_key=m.group(0)))
        for m in FIELD_PATTERN.finditer(equation)
    ]

    matches = list(qualified)
    for start, end, ref in bare:
        if any(q_start <= start and end <= q_end for q_start, q_end, _ in qualified):
            continue
        matches.append((start, end, ref))
    matches.sort(key=lambda m: m[0])

    return EquationParseResult(referenced=_dedupe([ref for _, _, ref in matches]))


def _dedupe(refs: List[EquationReference]) -> List[EquationReference]:
    seen = set()
    out: List[EquationReference] = []
    for ref in refs:
        ident = (ref.object_key or "-", ref.field_key)
        if ident not in seen:
            seen.add(ident)
            out.append(ref)
    return out
