from bookmarkcaller.app.bookmarks import SORT_NEWER, SORT_OLDER, BookmarkItem
from bookmarkcaller.app.dispatch import OpenDispatcher, Outcome
from bookmarkcaller.app.fuzzy import STRUCTURE_FLAT, STRUCTURE_ORIGINAL, FuzzyMatch, FuzzyNavigator, fuzzy_score

from conftest import file_item, group_item


def _tree():
    return [
        file_item("Notes/n1.md", title="Inbox", ctime=30),
        group_item(
            "Projects",
            [
                file_item("Notes/n2.md", title="Roadmap", ctime=10),
                group_item("Archive", [file_item("Notes/n3.md", title="Retro", ctime=50)], ctime=40),
            ],
            ctime=20,
        ),
        BookmarkItem(type="search", query="tag:#todo", ctime=60),
    ]


def _nav(host, items=None, **kwargs):
    return FuzzyNavigator(_tree() if items is None else items, OpenDispatcher(host.capabilities()), **kwargs)


def _titles(nav):
    return [nav.item_text(item) for item in nav.items]


class TestStructure:
    def test_flat_lists_every_node_preorder(self, host):
        nav = _nav(host, structure_type=STRUCTURE_FLAT)
        assert _titles(nav) == ["Inbox", "Projects", "Roadmap", "Archive", "Retro", "tag:#todo"]

    def test_original_keeps_top_level(self, host):
        nav = _nav(host, structure_type=STRUCTURE_ORIGINAL)
        assert _titles(nav) == ["Inbox", "Projects", "tag:#todo"]

    def test_sort_orders(self, host):
        newer = _nav(host, structure_type=STRUCTURE_ORIGINAL, sort_order=SORT_NEWER)
        older = _nav(host, structure_type=STRUCTURE_ORIGINAL, sort_order=SORT_OLDER)
        assert _titles(newer) == ["tag:#todo", "Inbox", "Projects"]
        assert _titles(older) == ["Projects", "Inbox", "tag:#todo"]


class TestLayers:
    def test_descend_and_back_produce_new_instances(self, host):
        root = _nav(host, structure_type=STRUCTURE_ORIGINAL, sort_order=SORT_NEWER)
        assert not root.can_go_back
        projects = root.items[2]
        outcome, child = root.choose(projects)
        assert outcome is Outcome.DESCEND
        assert child is not root
        assert child.depth == 1
        assert child.layers[:-1] == root.layers
        assert child.sort_order == SORT_NEWER
        assert _titles(child) == ["Archive", "Roadmap"]

        parent = child.back()
        assert parent is not None and parent is not root
        assert not parent.can_go_back
        assert _titles(parent) == _titles(root)
        # The child's stack is untouched by going back.
        assert child.depth == 1

    def test_back_at_root(self, host):
        assert _nav(host).back() is None

    def test_choose_leaf_dispatches(self, host):
        nav = _nav(host)
        outcome, child = nav.choose(nav.items[0])
        assert outcome is Outcome.DONE
        assert child is None
        assert host.opened() == [("file", "Notes/n1.md", None)]


class TestOpenAll:
    def test_flat_never_recurses(self, host):
        _nav(host, structure_type=STRUCTURE_FLAT, recursively_open=True).open_all()
        assert host.opened() == [
            ("file", "Notes/n1.md", None),
            ("file", "Notes/n2.md", None),
            ("file", "Notes/n3.md", None),
        ]

    def test_original_recurses_when_enabled(self, host):
        _nav(host, structure_type=STRUCTURE_ORIGINAL, recursively_open=True).open_all()
        assert [call[1] for call in host.opened()] == ["Notes/n1.md", "Notes/n2.md", "Notes/n3.md"]

    def test_original_without_recursion(self, host):
        _nav(host, structure_type=STRUCTURE_ORIGINAL, recursively_open=False).open_all()
        assert host.opened() == [("file", "Notes/n1.md", None)]


class TestFilter:
    def test_empty_query_keeps_order(self, host):
        nav = _nav(host)
        assert [item for item, _ in nav.filter("")] == nav.items

    def test_query_filters_and_highlights(self, host):
        nav = _nav(host)
        results = nav.filter("road")
        assert [nav.item_text(item) for item, _ in results] == ["Roadmap"]
        assert results[0][1].ranges == ((0, 4),)

    def test_results_sorted_by_score(self, host):
        def matcher(query, text):
            scores = {"Inbox": 10.0, "Roadmap": 90.0, "Retro": 50.0}
            return FuzzyMatch(scores[text]) if text in scores else None

        nav = _nav(host, matcher=matcher)
        assert [nav.item_text(item) for item, _ in nav.filter("x")] == ["Roadmap", "Retro", "Inbox"]


def test_fuzzy_score():
    assert fuzzy_score("", "anything") == FuzzyMatch(0.0)
    assert fuzzy_score("proj", "") is None
    assert fuzzy_score("zzz", "Projects") is None
    match = fuzzy_score("PROJ", "My Projects")
    assert match is not None
    assert match.score == 100
    assert match.ranges == ((3, 7),)


def test_ranges_index_text_with_expanding_lowercase():
    text = "İİ Roadmap"
    match = fuzzy_score("road", text)
    assert match is not None
    assert match.ranges == ((3, 7),)
    start, end = match.ranges[0]
    assert text[start:end] == "Road"
