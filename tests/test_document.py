"""
Tests for the document tree arena.
"""

from accessly.document import parse_document


def _first(tree, name):
    return tree.find(lambda node: node.name == name)


class TestParseDocument:
    """Tests for parse_document and DocumentTree."""

    def test_parent_indices(self):
        """Test parents are recorded as arena indices."""
        tree, _ = parse_document('<div><p>hi</p></div>')
        div = _first(tree, 'div')
        p = _first(tree, 'p')

        assert tree.parent(p) == div
        assert tree.parent(div) is None
        assert div in tree.roots
        assert p in tree.nodes[div].children

    def test_lineage_walks_to_root(self):
        """Test lineage yields the node followed by its ancestors."""
        tree, _ = parse_document('<html><body><main><span>x</span></main></body></html>')
        span = _first(tree, 'span')

        names = [tree.nodes[i].name for i in tree.lineage(span)]

        assert names == ['span', 'main', 'body', 'html']

    def test_document_order(self):
        """Test find_all returns tags in document order."""
        tree, _ = parse_document('<div><img src="1"><p><img src="2"></p></div><img src="3">')
        images = tree.find_all(lambda node: node.name == 'img')

        assert [tree.nodes[i].attrs['src'] for i in images] == ['1', '2', '3']

    def test_class_attribute_kept_as_string(self):
        """Test multi-valued attributes are not split."""
        tree, _ = parse_document('<p class="one two">x</p>')

        assert tree.nodes[_first(tree, 'p')].attrs['class'] == 'one two'

    def test_start_offsets(self):
        """Test tag offsets point at the opening '<'."""
        html = '<html>\n  <body>\n    <img src="x.png">\n  </body>\n</html>'
        tree, index = parse_document(html)
        img = tree.nodes[_first(tree, 'img')]

        assert img.start == html.index('<img')
        assert index.line_of(img.start) == 3

    def test_node_kinds(self):
        """Test text, comment, doctype and raw data kinds."""
        tree, _ = parse_document(
            '<!DOCTYPE html><!-- note --><style>.a{color:red}</style><p>text</p>'
        )
        kinds = {node.kind for node in tree.nodes}

        assert {'doctype', 'comment', 'data', 'text', 'tag'} <= kinds
        style = _first(tree, 'style')
        assert tree.text_of(style) == '.a{color:red}'
        assert tree.nodes[tree.nodes[style].children[0]].kind == 'data'

    def test_tag_names_lowercased(self):
        """Test element names are normalised to lower case."""
        tree, _ = parse_document('<IMG SRC="a.png">')

        assert _first(tree, 'img') is not None
        assert 'src' in tree.nodes[_first(tree, 'img')].attrs
