import json

import pytest

import main


def test_config_updates_and_reports(settings_path, capsys):
    code = main.main(["--settings", settings_path, "config", "--target", "ja", "--auto-translate", "on"])

    assert code == 0
    with open(settings_path, encoding="utf-8") as f:
        stored = json.load(f)
    assert stored["doubaoTargetLanguage"] == "ja"
    assert stored["autoTranslate"] is True
    assert "Target Language: ja (Valid)" in capsys.readouterr().out


def test_config_rejects_invalid_language(settings_path, capsys):
    code = main.main(["--settings", settings_path, "config", "--target", "xx"])

    assert code == 1
    assert 'Language "xx" is not supported' in capsys.readouterr().err


def test_translate_without_key_fails(settings_path, monkeypatch, capsys):
    monkeypatch.delenv("PAGE_TRANSLATOR_API_KEY", raising=False)

    code = main.main(["--settings", settings_path, "translate", "Hello"])

    assert code == 1
    assert "Missing API key" in capsys.readouterr().err


@pytest.mark.parametrize("argv,expected", [
    (["translate", "hi"], 15),
    (["translate", "--background", "hi"], 3),
    (["translate", "--background", "-c", "7", "hi"], 7),
])
def test_concurrency_selection(argv, expected):
    args = main.build_parser().parse_args(argv)
    assert main._concurrency(args) == expected
