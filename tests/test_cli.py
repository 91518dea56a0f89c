import json
import sqlite3
from pathlib import Path

from treemarks.cli import main

FIXTURE = Path(__file__).parent / "fixtures" / "sample_bookmarks.html"


def _import_json(tmp_path: Path, doc) -> Path:
    src = tmp_path / "tree.json"
    src.write_text(json.dumps(doc), encoding="utf-8")
    return src


def test_import_then_show_round_trip(tmp_path: Path, capsys):
    db = tmp_path / "cli.sqlite"
    src = _import_json(
        tmp_path,
        {"contents": [{"title": "A", "tags": ["work"]}, {"title": "F", "children": [{"title": "B"}]}]},
    )
    rc = main(["--db", str(db), "--no-color", "import", "--json", str(src), "--name", "main", "--user", "5"])
    assert rc == 0
    list_id = int(capsys.readouterr().out.strip())

    out = tmp_path / "show.json"
    rc = main(["--db", str(db), "show", "--list-id", str(list_id), "--out", str(out)])
    assert rc == 0
    doc = json.loads(out.read_text(encoding="utf-8"))
    assert [c["title"] for c in doc["contents"]] == ["A", "F"]
    assert doc["contents"][0]["tags"] == ["work"]
    assert [c["title"] for c in doc["contents"][1]["contents"]] == ["B"]

    rc = main(["--db", str(db), "lists", "--user", "5"])
    assert rc == 0
    lists = json.loads(capsys.readouterr().out)
    assert lists == [{"id": list_id, "name": "main", "head": doc["contents"][0]["id"]}]


def test_export_flat_list(tmp_path: Path, capsys):
    db = tmp_path / "cli.sqlite"
    src = _import_json(tmp_path, [{"title": "one"}, {"title": "two"}])
    assert main(["--db", str(db), "import", "--json", str(src), "--name", "flat", "--user", "1"]) == 0
    list_id = int(capsys.readouterr().out.strip())

    assert main(["--db", str(db), "export", "--list-id", str(list_id)]) == 0
    doc = json.loads(capsys.readouterr().out)
    assert [c["title"] for c in doc["bookmarks"]["children"]] == ["one", "two"]


def test_export_of_nested_list_reports_corruption(tmp_path: Path, capsys):
    db = tmp_path / "cli.sqlite"
    src = _import_json(tmp_path, [{"title": "F", "contents": [{"title": "B"}]}, {"title": "C"}])
    assert main(["--db", str(db), "import", "--json", str(src), "--name", "n", "--user", "1"]) == 0
    list_id = int(capsys.readouterr().out.strip())
    assert main(["--db", str(db), "export", "--list-id", str(list_id)]) == 2


def test_show_of_cyclic_list_reports_corruption(tmp_path: Path, capsys):
    db = tmp_path / "cli.sqlite"
    a, b = "11111111-1111-4111-8111-111111111111", "22222222-2222-4222-8222-222222222222"
    src = _import_json(tmp_path, [{"id": a, "title": "A"}, {"id": b, "title": "B"}])
    assert main(["--db", str(db), "import", "--json", str(src), "--name", "loop", "--user", "1"]) == 0
    list_id = int(capsys.readouterr().out.strip())
    with sqlite3.connect(db) as conn:
        conn.execute("UPDATE listnode SET next_node = ? WHERE node_id = ?", (a, b))
    assert main(["--db", str(db), "show", "--list-id", str(list_id)]) == 2
    captured = capsys.readouterr()
    assert captured.out == ""
    assert f"List {list_id} is corrupted" in captured.err


def test_import_html_and_export_html(tmp_path: Path, capsys):
    db = tmp_path / "cli.sqlite"
    rc = main(["--db", str(db), "import-html", "--html", str(FIXTURE), "--name", "browser", "--user", "1"])
    assert rc == 0
    list_id = int(capsys.readouterr().out.strip())

    out = tmp_path / "export.html"
    assert main(["--db", str(db), "export-html", "--list-id", str(list_id), "--out", str(out)]) == 0
    text = out.read_text(encoding="utf-8")
    assert text.index("GitHub") < text.index("Hacker News") < text.index("Wikipedia") < text.index("Mozilla")


def test_bad_inputs_return_2(tmp_path: Path):
    db = tmp_path / "cli.sqlite"
    assert main(["--db", str(db), "import", "--json", str(tmp_path / "missing.json"), "--name", "x", "--user", "1"]) == 2

    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    assert main(["--db", str(db), "import", "--json", str(bad), "--name", "x", "--user", "1"]) == 2

    src = _import_json(tmp_path, [{"title": "x"}])
    assert main(["--db", str(db), "import", "--json", str(src), "--name", "x", "--user", "1", "--list-id", "77"]) == 2
    assert main(["--db", str(db), "show", "--list-id", "77"]) == 2
    assert main(["--db", str(tmp_path / "nope.sqlite"), "show", "--list-id", "1"]) == 2
