from mfkn_indexer.scraper import config
from mfkn_indexer.scraper.case_content import CaseLink, parse_case_content

SHORT_RULING = "Nævnet stadfæster kommunens afgørelse om afslag x."
RULING_TEXT = (
    "Miljø- og Fødevareklagenævnet har behandlet klagen over kommunens afgørelse "
    "og finder, at der ikke er grundlag for at ændre den."
)

DETAIL_HTML = f"""
<html>
<head>
  <meta name="keywords" content="Naturbeskyttelse, Strandbeskyttelse">
  <script>var tracking = "ignore me";</script>
</head>
<body>
  <nav><a href="/soeg">Søg</a></nav>
  <main>
    <h1>Afgørelse i sag om strandbeskyttelse</h1>
    <span class="court">Miljø- og Fødevareklagenævnet</span>
    <div class="parties">A ApS mod B A/S</div>
    <p>Kort</p>
    <p>{SHORT_RULING}</p>
    <p>{RULING_TEXT}</p>
    <p>Se <a href="/afgoerelse/123">tidligere afgørelse</a> og
       <a href="https://www.retsinformation.dk/eli/lta/2022/1392">naturbeskyttelsesloven</a>.</p>
  </main>
  <footer>Kontakt os</footer>
</body>
</html>
"""


def test_paragraphs_keep_only_substantial_text() -> None:
    content = parse_case_content(DETAIL_HTML)

    assert content.paragraphs[:2] == [SHORT_RULING, RULING_TEXT]
    assert "Kort" not in content.paragraphs


def test_parties_split_on_mod() -> None:
    content = parse_case_content(DETAIL_HTML)

    assert content.parties == ["A ApS", "B A/S"]


def test_court_from_span() -> None:
    content = parse_case_content(DETAIL_HTML)

    assert content.court == "Miljø- og Fødevareklagenævnet"


def test_links_classified_internal_and_external() -> None:
    content = parse_case_content(DETAIL_HTML)

    assert CaseLink(
        text="tidligere afgørelse",
        url=f"{config.BASE_URL}/afgoerelse/123",
        kind="internal",
    ) in content.links
    assert CaseLink(
        text="naturbeskyttelsesloven",
        url="https://www.retsinformation.dk/eli/lta/2022/1392",
        kind="external",
    ) in content.links
    assert content.links_as_dicts()[0].keys() == {"text", "url", "kind"}


def test_keywords_from_meta_and_headings() -> None:
    content = parse_case_content(DETAIL_HTML)

    assert "Naturbeskyttelse" in content.keywords
    assert "Strandbeskyttelse" in content.keywords
    assert "Afgørelse i sag om strandbeskyttelse" in content.keywords
    assert len(content.keywords) == len(set(content.keywords))


def test_full_text_prefers_main_and_strips_noise() -> None:
    content = parse_case_content(DETAIL_HTML)

    assert RULING_TEXT in content.full_text
    assert "tracking" not in content.full_text
    assert "Kontakt os" not in content.full_text


def test_leaf_block_fallback_without_paragraph_tags() -> None:
    block = "Klagen angår " + "en tilladelse til byggeri i landzone " * 4
    html = f"""
    <html><body>
      <div><div>{block}</div></div>
      <div>Kort tekst</div>
    </body></html>
    """

    content = parse_case_content(html)

    assert content.paragraphs == [block.strip()]
    assert content.full_text.startswith("Klagen angår")


def test_court_falls_back_to_body_text() -> None:
    html = "<html><body><div>1. maj 2024: Sagen er afgjort af Planklagenævnet den 1. maj</div></body></html>"

    content = parse_case_content(html)

    assert content.court == "Sagen er afgjort af Planklagenævnet den"


def test_missing_structure_degrades_to_empty_fields() -> None:
    content = parse_case_content("<html><body></body></html>")

    assert content.paragraphs == []
    assert content.links == []
    assert content.court is None
    assert content.parties == []
    assert content.keywords == []
    assert content.full_text == ""


def test_paragraphs_of_5_50_and_120_characters() -> None:
    texts = ["Kort.", "N" * 50, "M" * 120]
    html = "<html><body>" + "".join(f"<p>{text}</p>" for text in texts) + "</body></html>"

    assert parse_case_content(html).paragraphs == ["N" * 50, "M" * 120]


def test_protocol_relative_link_is_external() -> None:
    content = parse_case_content('<html><body><a href="//other.example/x">ekstern</a></body></html>')

    assert content.links == [
        CaseLink(text="ekstern", url="https://other.example/x", kind="external")
    ]


def test_capital_v_in_party_name_is_not_a_separator() -> None:
    html = '<html><body><div class="parties">Christian V Fond mod Kommune</div></body></html>'

    assert parse_case_content(html).parties == ["Christian V Fond", "Kommune"]


def test_lowercase_versus_splits_parties() -> None:
    html = '<html><body><div class="parties">Hansen Byg ApS vs Aarhus Kommune</div></body></html>'

    assert parse_case_content(html).parties == ["Hansen Byg ApS", "Aarhus Kommune"]
