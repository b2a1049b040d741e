import json
import logging

import pytest

from csv_converter.converter import build_options, convert_csv_to_ndjson, convert_to_ndjson, resolve_dialect
from csv_converter.exceptions import InputReadError, MalformedRecordError, OutputWriteError
from csv_converter.models import Dialect, FileFormat
from csv_converter.parsers import base


def write(tmp_path, name, content):
    path = tmp_path / name
    path.write_bytes(content.encode("utf-8"))
    return path


def convert(tmp_path, content, name="input.csv", **kwargs):
    """Convert content and return (report, raw output text)."""
    source = write(tmp_path, name, content)
    output = tmp_path / "output.ndjson"
    report = convert_to_ndjson(source, output, **kwargs)
    return report, output.read_text(encoding="utf-8")


def records(text):
    return [json.loads(line) for line in text.splitlines()]


def test_round_trip_preserves_header_order(tmp_path):
    report, text = convert(tmp_path, "a,b\n1,x\n")
    assert text == '{"a":1,"b":"x"}\n'
    assert report.records == 1
    assert report.format == FileFormat.CSV


def test_basic_types(tmp_path):
    _, text = convert(tmp_path, "name,age,active\nAlice,30,true\nBob,25,false\n")
    assert records(text) == [
        {"name": "Alice", "age": 30, "active": True},
        {"name": "Bob", "age": 25, "active": False},
    ]


def test_semicolon_file(tmp_path):
    report, text = convert(tmp_path, "name;price;quantity\nWidget A;19.99;100\nWidget B;29.50;50\n")
    assert records(text)[0] == {"name": "Widget A", "price": 19.99, "quantity": 100}
    assert records(text)[1]["price"] == 29.5
    assert report.dialect.delimiter == ";"


def test_tab_file(tmp_path):
    _, text = convert(tmp_path, "name\tprice\nWidget A\t19.99\n")
    assert records(text) == [{"name": "Widget A", "price": 19.99}]


def test_doubled_quotes(tmp_path):
    content = 'name,description\n"Bob ""Bobby"" Smith","He said ""Hello"""\n'
    _, text = convert(tmp_path, content)
    assert records(text) == [{"name": 'Bob "Bobby" Smith', "description": 'He said "Hello"'}]
    assert r'"name":"Bob \"Bobby\" Smith"' in text


def test_backslash_escape_override(tmp_path):
    source = write(tmp_path, "backslash.csv", 'name,description\n"Bob \\"Bobby\\" Smith","He said \\"Hello\\""\n')
    output = tmp_path / "out.ndjson"
    dialect = resolve_dialect(source, escape="\\", encoding="utf-8")

    convert_csv_to_ndjson(source, output, dialect, encoding="utf-8")

    assert records(output.read_text(encoding="utf-8")) == [
        {"name": 'Bob "Bobby" Smith', "description": 'He said "Hello"'}
    ]


def test_leading_zero_preservation(tmp_path):
    _, text = convert(tmp_path, "zipcode,phone,age\n02134,0123456789,30\n10001,5551234567,25\n")
    rows = records(text)
    assert rows[0] == {"zipcode": "02134", "phone": "0123456789", "age": 30}
    assert rows[1]["zipcode"] == 10001


def test_string_fields(tmp_path):
    options = build_options(string_fields=["zipcode", "phone"])
    _, text = convert(tmp_path, "zipcode,phone,age\n02134,0123456789,30\n10001,5551234567,25\n", options=options)
    rows = records(text)
    assert rows[1] == {"zipcode": "10001", "phone": "5551234567", "age": 25}


def test_no_type_conversion(tmp_path):
    options = build_options(no_type_conversion=True)
    _, text = convert(tmp_path, "name,age,price,active,note\nAlice,30,19.99,true,\n", options=options)
    assert records(text) == [{"name": "Alice", "age": "30", "price": "19.99", "active": "true", "note": None}]


def test_empty_fields_are_null(tmp_path):
    _, text = convert(tmp_path, "name,email,phone\nAlice,alice@example.com,\nBob,,555-1234\n")
    assert '"phone":null' in text
    assert '"email":null' in text


def test_floats_keep_their_type(tmp_path):
    _, text = convert(tmp_path, "float_col\n3.14\n-2.5\n0.0\n0.99\n")
    assert text.splitlines() == [
        '{"float_col":3.14}',
        '{"float_col":-2.5}',
        '{"float_col":0.0}',
        '{"float_col":0.99}',
    ]


def test_short_rows_omit_trailing_keys(tmp_path):
    _, text = convert(tmp_path, "a,b,c\n1,2,3\n4\n")
    assert records(text)[1] == {"a": 4}


def test_extra_fields_get_synthetic_names(tmp_path):
    _, text = convert(tmp_path, "a,b\n1,2,3,4\n1,2\n")
    assert records(text)[0] == {"a": 1, "b": 2, "column_2": 3, "column_3": 4}


def test_duplicate_headers_last_value_wins(tmp_path):
    _, text = convert(tmp_path, "id,id\n1,2\n")
    assert records(text) == [{"id": 2}]


def test_blank_lines_are_skipped(tmp_path):
    report, text = convert(tmp_path, "a,b\n\n1,2\n\n3,4\n")
    assert report.records == 2
    assert records(text) == [{"a": 1, "b": 2}, {"a": 3, "b": 4}]


def test_header_only_and_empty_files(tmp_path):
    report, text = convert(tmp_path, "a,b\n")
    assert (report.records, text) == (0, "")

    report, text = convert(tmp_path, "", name="empty.csv")
    assert (report.records, text) == (0, "")


def test_complex_file(tmp_path):
    content = (
        "name,zipcode,phone,price,description,active\n"
        '"Alice ""A"" Smith",02134,0123456789,19.99,"A product with, commas",true\n'
        'Bob,10001,,29.50,"Another ""quoted"" item",false\n'
        "Charlie,00501,5551234567,0.99,,true\n"
    )
    options = build_options(string_fields=["zipcode", "phone"])
    _, text = convert(tmp_path, content, options=options)
    rows = records(text)

    assert rows[0]["name"] == 'Alice "A" Smith'
    assert rows[0]["description"] == "A product with, commas"
    assert rows[1]["zipcode"] == "10001"
    assert rows[1]["phone"] is None
    assert rows[2] == {
        "name": "Charlie",
        "zipcode": "00501",
        "phone": "5551234567",
        "price": 0.99,
        "description": None,
        "active": True,
    }


def test_non_ascii_output_is_not_escaped(tmp_path):
    _, text = convert(tmp_path, "city\nMontréal\n")
    assert text == '{"city":"Montréal"}\n'


def test_utf8_bom_does_not_reach_header(tmp_path):
    source = tmp_path / "bom.csv"
    source.write_bytes("a,b\n1,2\n".encode("utf-8-sig"))
    output = tmp_path / "out.ndjson"

    report = convert_to_ndjson(source, output)

    assert report.encoding == "utf-8-sig"
    assert records(output.read_text(encoding="utf-8")) == [{"a": 1, "b": 2}]


def test_malformed_row_aborts(tmp_path):
    source = write(tmp_path, "bad.csv", 'a,b\n"x"y,1\n')
    with pytest.raises(MalformedRecordError) as excinfo:
        convert_csv_to_ndjson(source, tmp_path / "out.ndjson", Dialect(), encoding="utf-8")
    assert "line 2" in str(excinfo.value)


def test_missing_input_raises(tmp_path):
    with pytest.raises(InputReadError):
        convert_csv_to_ndjson(tmp_path / "missing.csv", tmp_path / "out.ndjson", Dialect(), encoding="utf-8")


def test_uncreatable_output_raises(tmp_path):
    source = write(tmp_path, "input.csv", "a\n1\n")
    with pytest.raises(OutputWriteError) as excinfo:
        convert_to_ndjson(source, tmp_path / "no-such-dir" / "out.ndjson")
    assert "no-such-dir" in str(excinfo.value)


def test_writes_to_stdout_without_output_path(tmp_path, capsys):
    source = write(tmp_path, "input.csv", "a,b\n1,x\n")
    report = convert_to_ndjson(source)
    assert capsys.readouterr().out == '{"a":1,"b":"x"}\n'
    assert report.output_path is None


def test_progress_is_logged(tmp_path, caplog, monkeypatch):
    monkeypatch.setattr(base, "PROGRESS_INTERVAL", 2)
    caplog.set_level(logging.INFO, logger="csv_converter")

    convert(tmp_path, "n\n1\n2\n3\n4\n5\n")

    messages = [r.getMessage() for r in caplog.records]
    assert "Processed 2 records..." in messages
    assert "Processed 4 records..." in messages
    assert "Conversion complete! Processed 5 records." in messages


def test_fields_larger_than_128k_are_read(tmp_path):
    blob = "A" * 200_000
    report, text = convert(tmp_path, f'id,blob\n1,{blob}\n2,"{blob}"\n')
    assert report.records == 2
    assert records(text) == [{"id": 1, "blob": blob}, {"id": 2, "blob": blob}]
