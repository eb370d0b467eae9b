"""Tests for the document validator."""

import pytest

from question_extractor.services.validator import DocumentValidator, find_invalid_paragraphs


WELL_FORMED = [
    "1) What is 2+2?",
    "a) 3",
    "b) 4",
    "Ans) b",
    "Sol) Add the numbers",
    "",
    "Q2. Pick the colours of the sky",
    "at noon and at dusk",
    "a) Blue b) Orange (c) Green",
    "Answer: a, b",
]


def test_well_formed_document_is_valid():
    result = find_invalid_paragraphs(WELL_FORMED)

    assert result.invalid_indices == []
    assert result.is_valid is True


def test_scenario_plain_question_is_valid():
    assert find_invalid_paragraphs(["1) What is 2+2?", "a) 3", "b) 4", "Ans) b"]).is_valid


def test_answer_letter_out_of_range_is_flagged_on_answer_line():
    result = find_invalid_paragraphs(["1) Capital of France?", "a) Paris", "b) London", "Ans) c"])

    assert result.invalid_set == {3}


def test_each_out_of_range_letter_is_recorded():
    result = find_invalid_paragraphs(["1) Q", "a) x", "b) y", "Ans) c, d"])

    assert result.invalid_indices == [3, 3]
    assert result.invalid_set == {3}


def test_too_few_options_flags_option_start():
    result = find_invalid_paragraphs(["1) Q", "a) only one", "Ans) a"])

    assert result.invalid_set == {1}


def test_no_options_flags_answer_position():
    result = find_invalid_paragraphs(["1) Q", "Ans) a"])

    # Option region starts at the answer line
    assert result.invalid_set == {1}


def test_missing_answer_flags_paragraph_after_options():
    result = find_invalid_paragraphs(["1) Q", "a) x", "b) y", "2) Next", "a) x", "b) y", "Ans) a"])

    assert result.invalid_set == {3}


def test_missing_answer_at_end_flags_last_paragraph():
    result = find_invalid_paragraphs(["1) Q", "a) x", "b) y"])

    assert result.invalid_set == {2}


def test_letters_written_together_are_accepted():
    lines = ["1) Pick two", "a) x", "b) y", "c) z", "d) w", "Ans) bd"]

    assert find_invalid_paragraphs(lines).is_valid


def test_letter_written_together_still_checked_against_options():
    lines = ["1) Pick two", "a) x", "b) y", "c) z", "d) w", "Ans) be"]

    assert find_invalid_paragraphs(lines).invalid_set == {5}


def test_answer_without_letters_is_flagged():
    result = find_invalid_paragraphs(["1) Q", "a) x", "b) y", "Ans) 2"])

    assert result.invalid_set == {3}


def test_malformed_numeric_header_is_flagged():
    result = find_invalid_paragraphs(["12 apples\nand pears", "1) Q", "a) x", "b) y", "Ans) a"])

    assert result.invalid_set == {0}


def test_non_numeric_stray_text_is_ignored():
    result = find_invalid_paragraphs(["Section A: algebra", "1) Q", "a) x", "b) y", "Ans) a"])

    assert result.is_valid


def test_non_sequential_numbering_is_accepted():
    lines = ["5) Q", "a) x", "b) y", "Ans) a", "2) Q", "a) x", "b) y", "Ans) b"]
    assert find_invalid_paragraphs(lines).is_valid


def test_duplicate_answer_letters_are_accepted():
    assert find_invalid_paragraphs(["1) Q", "a) x", "b) y", "Ans) b, b"]).is_valid


def test_direction_contents_are_never_flagged():
    lines = [
        "D-1) Read the passage.",
        "Ans) z",
        "a) not an option",
        "##End Essay",
        "1) Q",
        "a) x",
        "b) y",
        "Ans) a",
    ]
    result = find_invalid_paragraphs(lines)

    assert result.invalid_set.isdisjoint({0, 1, 2, 3})
    assert result.is_valid


def test_direction_closed_by_question_start():
    lines = ["D-1) Read the passage.", "1) Question one?", "a) X", "b) Y", "Ans) a", "##End Essay"]
    assert find_invalid_paragraphs(lines).is_valid


def test_collects_all_violations_in_one_pass():
    lines = [
        "1) Q",
        "a) x",
        "Ans) a",
        "2) Q",
        "a) x",
        "b) y",
        "Ans) e",
    ]
    result = find_invalid_paragraphs(lines)

    assert result.invalid_set == {1, 6}


def test_empty_paragraph_list_is_invalid_at_zero():
    assert find_invalid_paragraphs([]).invalid_indices == [0]


def test_validation_is_idempotent():
    lines = ["1) Q", "a) x", "Ans) c", "junk", "3", "2) Q", "a) x", "b) y"]

    assert find_invalid_paragraphs(lines) == find_invalid_paragraphs(lines)


def test_validator_resets_option_count_per_question():
    validator = DocumentValidator(["1) Q", "a) x", "b) y", "c) z", "Ans) c", "2) Q", "a) x", "b) y", "Ans) c"])
    validator.run()

    assert validator.invalid == [8]


@pytest.mark.parametrize(
    "lines",
    [
        ["garbage"],
        ["a) x", "b) y"],
        ["Ans) a"],
        ["##End Essay"],
        ["D-1) never closed", "text"],
    ],
)
def test_never_raises_on_malformed_input(lines):
    find_invalid_paragraphs(lines)
