import pytest

from content_filter import PROTECTED_TERMS, VIOLENT_TERMS, check_text


@pytest.mark.parametrize("term", PROTECTED_TERMS)
def test_protected_terms_block_in_any_case(term):
    for text in (term, term.upper(), f"mijn buurman, de {term.capitalize()} fan"):
        res = check_text(text)
        assert res.blocked
        assert res.reason == "protected"


@pytest.mark.parametrize("term", VIOLENT_TERMS)
def test_violent_terms_block_in_any_case(term):
    res = check_text(f"Ik ga {term.upper()} zeggen")
    assert res.blocked
    assert res.reason == "violent"


def test_protected_is_checked_before_violent():
    res = check_text("bomb the white house")
    assert res.reason == "protected"


def test_substring_match_overblocks():
    # "diet" contains "die", "pharmacy" contains "harm"
    assert check_text("mijn diet").reason == "violent"
    assert check_text("de pharmacy").reason == "violent"


@pytest.mark.parametrize("text", [
    "Je bent altijd te laat",
    "Altijd problemen met je laptop",
    "Je dates zijn cringier dan je bio",
    "",
    None,
])
def test_clean_text_passes(text):
    res = check_text(text)
    assert not res.blocked
    assert res.reason is None


def test_homoglyphs_only_folded_when_asked():
    # Cyrillic "о" (U+043E) in place of the Latin o
    sneaky = "bоmb"
    assert not check_text(sneaky).blocked
    res = check_text(sneaky, normalize_homoglyphs=True)
    assert res.blocked
    assert res.reason == "violent"


def test_homoglyph_folding_keeps_plain_text_clean():
    assert not check_text("Altijd problemen met je laptop", normalize_homoglyphs=True).blocked
