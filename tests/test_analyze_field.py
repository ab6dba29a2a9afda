import json
import runpy
import sys
from pathlib import Path

SCRIPT = Path(__file__).parent.parent / "backend" / "scripts" / "analyze_field.py"


def test_report(tmp_path, monkeypatch, capsys, application):
    path = tmp_path / "application.json"
    path.write_text(json.dumps({"application": application}))

    monkeypatch.setattr(
        sys, "argv", ["analyze_field.py", str(path), "--field", "field_1", "--object", "object_2", "--top", "2"]
    )
    runpy.run_path(str(SCRIPT), run_name="__main__")

    out = capsys.readouterr().out
    assert "Nodes: 14" in out
    assert "Edges: 42" in out
    assert "field_1 (Quantity): 9" in out
    assert "Formula cycles: 0" in out
    assert "'total_impacted_fields': 4" in out
    assert "Object ripple for object_2: 4 nodes, 3 edges" in out
    assert "Top 2 fields by complexity:" in out
    assert "Complexity for field_1: 25" in out
    assert "Object complexity for object_2: 8.5 over 2 fields" in out
