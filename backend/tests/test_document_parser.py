import pytest

from leadengine.core.errors import (
    ConflictError,
    EmptyResultError,
    FormatError,
    NotFoundError,
    PersistenceError,
)
from leadengine.models.enums import AssignmentMode
from leadengine.services.document_parser import (
    invalid_phone_numbers,
    is_valid_phone_number,
    parse_document_text,
)


def test_cold_calling_document_groups_numbers_by_name():
    text = "Random Data(Ahmed)\n01012345678\n01098765432\nRandom Data(Sara)\n01055555555"

    parsed = parse_document_text(text)

    assert parsed.assignment_mode == AssignmentMode.COLD_CALLING
    assert [(a.employee_name_hint, a.phone_numbers) for a in parsed.assignments] == [
        ("Ahmed", ["01012345678", "01098765432"]),
        ("Sara", ["01055555555"]),
    ]
    assert parsed.total_numbers == 3


def test_targeted_marker_accepts_frome_typo_and_any_case():
    text = "data frome page ( Mona Ali )\r\n  01234567890  \r\n\r\nDATA FROM PAGE(Omar)\r\n0101234567"

    parsed = parse_document_text(text)

    assert parsed.assignment_mode == AssignmentMode.TARGETED
    assert [(a.employee_name_hint, a.phone_numbers) for a in parsed.assignments] == [
        ("Mona Ali", ["01234567890"]),
        ("Omar", ["0101234567"]),
    ]


def test_cold_calling_marker_wins_when_both_present():
    text = "Data From Page(Sara)\n01055555555\nRandom Data(Ahmed)\n01012345678"

    parsed = parse_document_text(text)

    assert parsed.assignment_mode == AssignmentMode.COLD_CALLING
    assert [a.employee_name_hint for a in parsed.assignments] == ["Sara", "Ahmed"]


def test_missing_marker_raises_format_error():
    with pytest.raises(FormatError):
        parse_document_text("Ahmed\n01012345678\n01098765432")


def test_marker_without_numbers_raises_empty_result():
    with pytest.raises(EmptyResultError):
        parse_document_text("Random Data(Ahmed)\nno numbers here\nRandom Data(Sara)")


def test_non_number_lines_and_orphan_numbers_are_ignored():
    text = "\n".join(
        [
            "01000000000",  # before any header
            "Random Data(Ahmed)",
            "Call after 5pm",
            "010 1234 5678",
            "010123456789",  # 12 digits
            "012345678",  # 9 digits
            "01012345678",
            "Random Data(Empty)",
            "Random Data(Sara)",
            "01055555555",
        ]
    )

    parsed = parse_document_text(text)

    assert [(a.employee_name_hint, a.phone_numbers) for a in parsed.assignments] == [
        ("Ahmed", ["01012345678"]),
        ("Sara", ["01055555555"]),
    ]


def test_repeated_name_headers_produce_separate_groups():
    text = "Random Data(Ahmed)\n01012345678\nRandom Data(Ahmed)\n01098765432"

    parsed = parse_document_text(text)

    assert [a.phone_numbers for a in parsed.assignments] == [["01012345678"], ["01098765432"]]


@pytest.mark.parametrize(
    "value,expected",
    [
        ("01012345678", True),
        ("0101234567", True),
        ("0123456", False),
        ("02012345678", False),
        ("010123456789", False),
        ("0101234567a", False),
        ("", False),
    ],
)
def test_is_valid_phone_number(value, expected):
    assert is_valid_phone_number(value) is expected


def test_parser_keeps_numbers_the_validator_rejects():
    parsed = parse_document_text("Random Data(Ahmed)\n02012345678\n01012345678")

    assert parsed.assignments[0].phone_numbers == ["02012345678", "01012345678"]
    assert invalid_phone_numbers(parsed) == ["02012345678"]


def test_only_ascii_digits_count_as_phone_numbers():
    arabic_indic = "٠١٠١٢٣٤٥٦٧٨"

    assert is_valid_phone_number("01" + "٠" * 9) is False
    with pytest.raises(EmptyResultError):
        parse_document_text(f"Random Data(Ahmed)\n{arabic_indic}")

    parsed = parse_document_text(f"Random Data(Ahmed)\n{arabic_indic}\n01012345678")
    assert parsed.assignments[0].phone_numbers == ["01012345678"]


def test_error_kinds_carry_their_http_status():
    assert [
        FormatError.status_code,
        EmptyResultError.status_code,
        NotFoundError.status_code,
        ConflictError.status_code,
        PersistenceError.status_code,
    ] == [400, 422, 404, 409, 503]
