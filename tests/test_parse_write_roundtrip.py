from pathlib import Path

from treemarks.model import BOOKMARK, FOLDER, Node
from treemarks.parse_netscape import parse_bookmarks_html, parse_bookmarks_text
from treemarks.writer_netscape import render_bookmarks_html, write_bookmarks_html

FIXTURE = Path(__file__).parent / "fixtures" / "sample_bookmarks.html"


def _titles(nodes):
    return [(n.title, _titles(n.contents)) for n in nodes]


def test_parse_keeps_nesting_order_and_attributes():
    nodes, root_title = parse_bookmarks_html(FIXTURE)
    assert root_title == "Bookmarks Menu"
    assert _titles(nodes) == [
        (
            "Bookmarks Toolbar",
            [
                ("GitHub", []),
                ("Reading", [("Hacker News", []), ("LWN", [])]),
                ("Wikipedia", []),
            ],
        ),
        ("Mozilla", []),
    ]
    toolbar = nodes[0]
    assert toolbar.type == FOLDER
    assert toolbar.ns_root == "toolbar"
    assert toolbar.add_date == 1700000000
    assert toolbar.last_modified == 1700000100

    github = toolbar.contents[0]
    assert github.type == BOOKMARK
    assert github.url == "https://github.com/"
    assert github.tags == ["dev", "code"]
    assert github.add_date == 1700000001

    assert nodes[1].icon == "data:image/png;base64,AAAA"


def test_write_then_parse_preserves_tree(tmp_path: Path):
    nodes, _ = parse_bookmarks_html(FIXTURE)
    out = tmp_path / "out.html"
    write_bookmarks_html(out_path=out, root=Node(title="", contents=nodes), title_root="Bookmarks (test)")
    text = out.read_text(encoding="utf-8")
    assert "NETSCAPE-Bookmark-file-1" in text
    assert 'PERSONAL_TOOLBAR_FOLDER="true"' in text
    assert 'TAGS="dev,code"' in text

    again, root_title = parse_bookmarks_html(out)
    assert root_title == "Bookmarks (test)"
    assert _titles(again) == _titles(nodes)
    assert again[0].contents[0].tags == ["dev", "code"]


def test_parse_splits_space_separated_tags():
    html = """<!DOCTYPE NETSCAPE-Bookmark-file-1>
<H1>Bookmarks</H1>
<DL><p>
  <DT><A HREF="https://a.example/" TAGS="one two">A</A>
</DL><p>
"""
    nodes, _ = parse_bookmarks_text(html)
    assert nodes[0].tags == ["one", "two"]


def test_render_escapes_titles_and_urls():
    root = Node(title="", contents=[Node(title="<b>&", url='https://x.example/?a=1&b="2"')])
    text = render_bookmarks_html(root, title_root="T")
    assert "&lt;b&gt;&amp;" in text
    assert "&quot;2&quot;" in text


def test_empty_folder_does_not_take_next_folders_contents(tmp_path: Path):
    html = """<!DOCTYPE NETSCAPE-Bookmark-file-1>
<TITLE>Bookmarks</TITLE>
<H1>Bookmarks</H1>
<DL><p>
    <DT><H3>Empty</H3>
    <DT><H3>Full</H3>
    <DL><p>
        <DT><A HREF="https://a.example/">A</A>
    </DL><p>
    <DT><A HREF="https://b.example/">B</A>
</DL><p>
"""
    src = tmp_path / "empty-folder.html"
    src.write_text(html, encoding="utf-8")

    nodes, _ = parse_bookmarks_html(src)

    assert _titles(nodes) == [("Empty", []), ("Full", [("A", [])]), ("B", [])]
    assert nodes[0].type == FOLDER
