import json

import pytest

from doctors import cli


@pytest.fixture
def input_file(tmp_path, sample_rows):
    path = tmp_path / "doctors.json"
    path.write_text(json.dumps(sample_rows, ensure_ascii=False), encoding="utf-8")
    return path


def test_stats_grouped_and_per_row(input_file, capsys):
    cli.main(["stats", "--input", str(input_file)])
    out = capsys.readouterr().out
    assert "Rows: 4" in out
    assert "Distinct ids: 3" in out
    assert "Doctors (grouped): 3" in out

    cli.main(["stats", "--input", str(input_file), "--strategy", "per-row"])
    assert "Doctors (per_row): 4" in capsys.readouterr().out


def test_vocab_with_and_without_fallback(input_file, tmp_path):
    out = tmp_path / "vocab.json"
    cli.main(["vocab", "--input", str(input_file), "--lang", "zh-hk", "--output", str(out)])
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["lang"] == "zh-HK"
    assert data["default_city"] == "香港"
    assert "Kowloon" in data["cities"]

    cli.main(["vocab", "--input", str(input_file), "--lang", "zh-hk", "--exact", "--output", str(out)])
    data = json.loads(out.read_text(encoding="utf-8"))
    assert "Kowloon" not in data["cities"]


def test_filter_outputs_cards(input_file, tmp_path):
    out = tmp_path / "cards.json"
    cli.main(["filter", "--input", str(input_file), "--lang", "en", "--specialty", "cardiology", "--output", str(out)])
    cards = json.loads(out.read_text(encoding="utf-8"))
    assert [card["id"] for card in cards] == ["2", "3"]
    assert cards[1]["name"] == "張"


def test_export_normalized(input_file, tmp_path):
    out = tmp_path / "export.json"
    cli.main(["export", "--input", str(input_file), "--output", str(out)])
    exported = json.loads(out.read_text(encoding="utf-8"))
    assert len(exported) == 3
    assert exported[0]["names"] == {"en": "Tan", "zh-HK": "陳"}


def test_missing_input_exits(tmp_path):
    with pytest.raises(SystemExit) as exc:
        cli.main(["stats", "--input", str(tmp_path / "missing.json")])
    assert "error loading data" in str(exc.value)


def test_unknown_strategy_rejected(input_file):
    with pytest.raises(SystemExit):
        cli.main(["stats", "--input", str(input_file), "--strategy", "bogus"])
