"""Tests for the command line interface."""

import json

import pytest

from vidnote.cli import build_parser, main
from vidnote.core.persistence import JsonFileKeyValueStore, LocalBackend
from vidnote.tests.conftest import make_line, make_rectangle


@pytest.fixture
def storage(tmp_path, monkeypatch):
    path = tmp_path / "storage.json"
    monkeypatch.setenv("VIDNOTE_storage__path", str(path))
    monkeypatch.setenv("VIDNOTE_video_id", "vid-1")
    backend = LocalBackend(JsonFileKeyValueStore(path))
    records = [
        make_rectangle(id=1, start=0.0, end=2.0).to_dict(),
        make_line(id=2, start=5.0, end=6.0).to_dict(),
    ]
    JsonFileKeyValueStore(path).set(
        backend.key, json.dumps([{**r, "videoId": "vid-1"} for r in records])
    )
    return path


def test_subcommands_are_discovered():
    parser = build_parser()
    args = parser.parse_args(["show", "--at", "1.5"])
    assert args.at == 1.5
    assert callable(args.fn)

    args = parser.parse_args(["serve", "-p", "9000"])
    assert args.port == 9000


def test_show_lists_annotations(storage, capsys):
    main(["show"])
    lines = capsys.readouterr().out.strip().splitlines()
    assert [line.split("\t")[:2] for line in lines] == [["1", "rectangle"], ["2", "line"]]


def test_show_at_time(storage, capsys):
    main(["show", "--at", "5.5", "--json"])
    records = json.loads(capsys.readouterr().out)
    assert [r["id"] for r in records] == [2]


def test_show_other_video(storage, capsys):
    main(["show", "vid-2"])
    assert capsys.readouterr().out == ""


def test_version(capsys):
    with pytest.raises(SystemExit):
        main(["-V"])
    assert capsys.readouterr().out.strip() == "0.1.0"
