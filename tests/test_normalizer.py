from __future__ import annotations

from navcaddy.cognition.normalizer import InputNormalizer, ModificationType, normalize


def test_compound_number_collapses_to_digits() -> None:
    result = normalize("one fifty to the green")

    assert result.text == "150 to the green"
    numbers = result.modifications_of(ModificationType.NUMBER)
    assert len(numbers) == 1
    assert numbers[0].original == "one fifty"
    assert numbers[0].replacement == "150"


def test_club_abbreviation_expands() -> None:
    result = normalize("use my 7i")

    assert result.text == "use my 7-iron"
    slang = result.modifications_of(ModificationType.SLANG)
    assert [(item.original, item.replacement) for item in slang] == [("7i", "7-iron")]


def test_longest_compound_wins() -> None:
    assert normalize("one hundred fifty out").text == "150 out"
    assert normalize("twenty five yards").text == "25 yards"
    assert normalize("hit a seven iron").text == "hit a 7-iron"


def test_three_word_yardage_shorthand() -> None:
    result = normalize("one twenty five to the pin")

    assert result.text == "125 to the pin"
    numbers = result.modifications_of(ModificationType.NUMBER)
    assert [(item.original, item.replacement) for item in numbers] == [("one twenty five", "125")]
    assert normalize("two thirty-five carry").text == "235 carry"
    assert normalize("one twenty out").text == "120 out"


def test_common_terms_and_case_insensitivity() -> None:
    assert normalize("Grab my Big Dog").text == "Grab my driver"
    assert normalize("Grab the Big Dog").text == "Grab driver"
    assert normalize("on the dance floor").text == "on the green"
    assert normalize("flat stick time").text == "putter time"


def test_single_number_words() -> None:
    assert normalize("par three hole").text == "par 3 hole"


def test_profanity_masked_with_same_length() -> None:
    result = normalize("that shot was shit")

    assert result.text == "that shot was ****"
    assert len(result.modifications_of(ModificationType.PROFANITY)) == 1


def test_whole_word_matching_leaves_substrings_alone() -> None:
    result = normalize("I need assistance with my drive")

    assert result.text == "I need assistance with my drive"
    assert not result.was_modified


def test_apostrophe_words_are_not_abbreviations() -> None:
    assert normalize("I'd like the 5w").text == "I'd like the 5-wood"


def test_cleanup_collapses_whitespace_and_punctuation() -> None:
    result = normalize("  what   club ??  ")

    assert result.text == "what club?"
    assert result.modifications_of(ModificationType.CLEANUP)


def test_blank_input_is_unmodified() -> None:
    result = normalize("   ")

    assert result.text == "   "
    assert result.modifications == ()


def test_normalizing_twice_is_a_no_op() -> None:
    normalizer = InputNormalizer()
    samples = [
        "one fifty to the green",
        "use my 7i from the rough!!",
        "twenty five   yards , big dog",
        "a . .",
        "That was damn good",
    ]
    for sample in samples:
        once = normalizer.normalize(sample)
        twice = normalizer.normalize(once.text)
        assert twice.text == once.text
        assert not twice.was_modified
