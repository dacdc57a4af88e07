# tests/batch/test_heading_extractor.py
import pytest

from headmap_batch.services.heading_extract_service import HeadingExtractService

PAGE = """
<html><body>
<header><h1 class="title">Acme Bakery</h1></header>
<nav aria-label="Primary"><h2>Menu</h2></nav>
<main>
  <section><h2 aria-hidden="true">Hidden</h2></section>
  <div><h2 style="display: none">Gone</h2></div>
  <div class="sr-only"><h3>Only for readers</h3></div>
  <a href="/x"><h3>Linked</h3></a>
  <h4 aria-level="2" role="presentation">  Spaced
     out  </h4>
  <section aria-label="Pricing"><h2 style="opacity: 0">Faded</h2></section>
</main>
<footer><h2>Contact</h2></footer>
</body></html>
"""


@pytest.fixture(scope="module")
def records():
    return HeadingExtractService().extract(PAGE)


def test_document_order_and_positions(records):
    assert [r.text for r in records] == [
        "Acme Bakery", "Menu", "Hidden", "Gone", "Only for readers", "Linked", "Spaced out", "Faded", "Contact",
    ]
    assert [r.position for r in records] == list(range(9))
    assert [r.level for r in records] == [1, 2, 2, 2, 3, 3, 4, 2, 2]


def test_structure_metadata(records):
    h1 = records[0]
    assert h1.tag == "h1"
    assert h1.depth == 3
    assert h1.parent_tag == "header"
    assert h1.raw_markup == '<h1 class="title">Acme Bakery</h1>'
    assert records[5].parent_tag == "a"


@pytest.mark.parametrize("index, landmark", [
    (0, "banner"), (1, "navigation"), (2, "main"), (7, "region"), (8, "contentinfo"),
])
def test_landmarks(records, index, landmark):
    assert records[index].is_in_landmark
    assert records[index].landmark_type == landmark


def test_parent_semantic_tag(records):
    assert records[1].parent_semantic_tag == "nav"
    assert records[2].parent_semantic_tag == "section"
    # The nearest sectioning ancestor wins over a direct <div> parent.
    assert records[3].parent_semantic_tag == "main"


@pytest.mark.parametrize("index, method", [
    (2, "aria-hidden"), (3, "display-none"), (4, "off-screen"), (7, "opacity-0"),
])
def test_hidden_methods(records, index, method):
    assert records[index].is_hidden
    assert records[index].hidden_method == method


def test_visible_headings(records):
    assert not records[0].is_hidden
    assert records[0].hidden_method is None
    assert records[2].aria_hidden
    assert not records[3].aria_hidden


def test_aria_attributes(records):
    h4 = records[6]
    assert h4.aria_level == 2
    assert h4.role == "presentation"


def test_hidden_ancestor_is_inherited():
    html = '<body><div aria-hidden="true"><h2>Decor</h2></div><div hidden><h3>Later</h3></div></body>'
    first, second = HeadingExtractService().extract(html)
    assert first.aria_hidden and first.hidden_method == "aria-hidden"
    assert second.hidden_method == "display-none"


def test_unparseable_aria_level_is_ignored():
    record, = HeadingExtractService().extract('<h2 aria-level="two">Pricing</h2>')
    assert record.aria_level is None


def test_fragment_without_body():
    record, = HeadingExtractService().extract("<h2>Just a fragment</h2>")
    assert record.text == "Just a fragment"
    assert record.depth == 0
    assert record.parent_tag is None
    assert record.parent_semantic_tag is None


def test_custom_container():
    records = HeadingExtractService().extract(PAGE, container="main")
    assert [r.text for r in records][:2] == ["Hidden", "Gone"]
    assert [r.position for r in records] == list(range(6))


def test_missing_container_and_empty_input():
    service = HeadingExtractService()
    assert service.extract(PAGE, container="#missing") == []
    assert service.extract("") == []
