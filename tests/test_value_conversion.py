from csv_converter.models import ConversionOptions
from csv_converter.value_conversion import convert_field_value, has_leading_zero


def test_integers():
    assert convert_field_value("42", "age") == 42
    assert convert_field_value("-42", "temp") == -42
    assert convert_field_value("0", "count") == 0
    assert isinstance(convert_field_value("42", "age"), int)


def test_floats():
    assert convert_field_value("3.14", "price") == 3.14
    assert convert_field_value("-2.5", "delta") == -2.5
    assert convert_field_value("1e3", "big") == 1000.0
    assert isinstance(convert_field_value("0.0", "zero"), float)


def test_booleans_any_case():
    assert convert_field_value("true", "active") is True
    assert convert_field_value("TRUE", "active") is True
    assert convert_field_value("False", "active") is False
    assert convert_field_value("FALSE", "active") is False


def test_leading_zeros_stay_strings():
    assert convert_field_value("02134", "zipcode") == "02134"
    assert convert_field_value("0123456789", "phone") == "0123456789"
    assert convert_field_value("00", "code") == "00"


def test_decimal_with_leading_zero_is_number():
    assert convert_field_value("0.5", "score") == 0.5
    assert convert_field_value("0.99", "score") == 0.99


def test_has_leading_zero():
    assert has_leading_zero("007")
    assert not has_leading_zero("0")
    assert not has_leading_zero("0.25")
    assert not has_leading_zero("70")


def test_empty_is_null():
    assert convert_field_value("", "field") is None


def test_plain_strings_are_verbatim():
    assert convert_field_value("Hello World", "name") == "Hello World"
    assert convert_field_value(" 42", "padded") == " 42"
    assert convert_field_value("1_000", "sep") == "1_000"
    assert convert_field_value("yes", "flag") == "yes"


def test_non_finite_floats_stay_strings():
    assert convert_field_value("NaN", "x") == "NaN"
    assert convert_field_value("inf", "x") == "inf"
    assert convert_field_value("1e400", "x") == "1e400"


def test_integer_outside_64_bit_range_becomes_float():
    value = convert_field_value("99999999999999999999", "big")
    assert isinstance(value, float)


def test_string_fields_override_inference():
    options = ConversionOptions(string_fields=["zipcode"])
    assert convert_field_value("12345", "zipcode", options) == "12345"
    assert convert_field_value("true", "zipcode", options) == "true"
    assert convert_field_value("", "zipcode", options) is None
    assert convert_field_value("12345", "other", options) == 12345


def test_no_type_conversion():
    options = ConversionOptions(no_type_conversion=True)
    assert convert_field_value("42", "age", options) == "42"
    assert convert_field_value("true", "active", options) == "true"
    assert convert_field_value("3.5", "price", options) == "3.5"
    assert convert_field_value("", "age", options) is None


def test_huge_digit_strings_never_raise():
    # past the interpreter's str->int digit limit
    assert convert_field_value("9" * 5000, "blob") == "9" * 5000
    assert convert_field_value("-" + "9" * 5000, "blob") == "-" + "9" * 5000
    assert convert_field_value("0" * 4999 + "1", "blob") == "0" * 4999 + "1"
    assert convert_field_value("-" + "0" * 5000 + "7", "n") == -7
