import json

import propset2text
from propset2text.cli import main
from propset2text.extractors.serialization import serialize_extraction
from propset2text.hpsf.names import SUMMARY_INFORMATION_STREAM
from propset2text.tests.stream_builders import sample_document, summary_stream


def _write_sample(tmp_path, name: str = "sample.doc", **streams: bytes):
    path = tmp_path / name
    path.write_bytes(sample_document(**streams))
    return path


def test_cli_outputs_full_text_by_default(tmp_path, capsys) -> None:
    path = _write_sample(tmp_path)
    expected = next(propset2text.read_file(path)).get_full_text()

    exit_code = main([str(path)])
    captured = capsys.readouterr()

    assert exit_code == 0
    assert captured.out == expected
    assert captured.out.startswith("PID_CODEPAGE = 1252\nPID_TITLE = Mickey's Title\n")
    assert captured.out.endswith("Client = sample client\nDivision = sample division\n")


def test_cli_outputs_single_section(tmp_path, capsys) -> None:
    path = _write_sample(tmp_path)
    content = next(propset2text.read_file(path))

    assert main(["--section", "summary", str(path)]) == 0
    assert capsys.readouterr().out == content.get_summary_information_text()

    assert main(["--section", "document", str(path)]) == 0
    assert capsys.readouterr().out == content.get_document_summary_information_text()


def test_cli_outputs_json_with_flag(tmp_path, capsys) -> None:
    path = _write_sample(tmp_path)
    expected = serialize_extraction(
        next(propset2text.read_file(path)), include_binary=False
    )

    exit_code = main(["--json", str(path)])
    captured = capsys.readouterr()

    assert exit_code == 0
    payload = json.loads(captured.out.strip())
    assert payload == expected
    assert payload["_type"] == "PropertiesContent"
    assert payload["custom_properties"][0] == {
        "_type": "PropertyEntry",
        "name": "Client",
        "value": "sample client",
    }


def test_cli_outputs_json_without_binary_payloads(tmp_path, capsys) -> None:
    path = _write_sample(
        tmp_path, **{SUMMARY_INFORMATION_STREAM: summary_stream(with_thumbnail=True)}
    )

    exit_code = main(["--json", str(path)])
    captured = capsys.readouterr()

    assert exit_code == 0
    payload = json.loads(captured.out.strip())
    assert payload["thumbnail"]["content_type"] == "image/x-wmf"
    assert payload["thumbnail"]["data"] is None


def test_cli_outputs_json_with_binary_payloads_when_requested(tmp_path, capsys) -> None:
    path = _write_sample(
        tmp_path, **{SUMMARY_INFORMATION_STREAM: summary_stream(with_thumbnail=True)}
    )

    exit_code = main(["--json", "--binary", str(path)])
    captured = capsys.readouterr()

    assert exit_code == 0
    payload = json.loads(captured.out.strip())
    assert isinstance(payload["thumbnail"]["data"], dict)
    assert "_bytes" in payload["thumbnail"]["data"]


def test_cli_rejects_binary_without_json(tmp_path, capsys) -> None:
    path = _write_sample(tmp_path)
    exit_code = main(["--binary", str(path)])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "requires --json" in captured.err


def test_cli_warns_on_unsupported_argument(tmp_path, capsys) -> None:
    path = _write_sample(tmp_path)
    exit_code = main(["--json", "--not-a-real-flag", str(path)])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert "warning: unsupported arguments" in captured.err


def test_cli_reports_non_ole_files(tmp_path, capsys) -> None:
    path = tmp_path / "notes.txt"
    path.write_text("just some text\n" * 200)

    exit_code = main([str(path)])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert captured.err.startswith("propset2text: Not an OLE2 compound document")


def test_cli_reports_missing_files(tmp_path, capsys) -> None:
    exit_code = main([str(tmp_path / "missing.doc")])
    captured = capsys.readouterr()

    assert exit_code == 1
    assert captured.err.startswith("propset2text: ")
