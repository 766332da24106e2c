"""Tests for the CLI module."""

import json

import pytest
import yaml
from typer.testing import CliRunner

from threadrank.cli import app

from conftest import NOW, seed_document


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def no_logging_setup(mocker):
    return mocker.patch("threadrank.cli.setup_logging")


@pytest.fixture
def fixture_path(tmp_path):
    path = tmp_path / "fixture.yaml"
    document = seed_document()
    # A reply whose parent was never loaded.
    document["comments"].append(
        {"id": 9, "item_id": 1, "parent_id": 77, "body": "lost", "author_id": 3, "created_at": NOW.isoformat()}
    )
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(document, f)
    return str(path)


def test_front_page(runner, fixture_path, no_logging_setup):
    result = runner.invoke(app, ["front-page", fixture_path, "--now", NOW.isoformat()])

    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert lines[0].startswith("  1. Fresh")
    assert "Old but popular" in lines[4]
    assert "21 points by alice 2 days ago | 5 comments" in lines[5]
    assert lines[-1] == "prev: -1  next: -1"
    no_logging_setup.assert_called_once_with(log_level="WARNING")


def test_front_page_by_rank_as_json(runner, fixture_path):
    result = runner.invoke(
        app, ["front-page", fixture_path, "--now", NOW.isoformat(), "--order", "rank", "--viewer", "2", "--json"]
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert [s["id"] for s in payload["stories"]] == [1, 2, 3]
    assert [s["upvoted"] for s in payload["stories"]] == [True, True, False]
    assert payload["next_page"] == -1


def test_front_page_second_page(runner, fixture_path, monkeypatch):
    monkeypatch.setenv("STORIES_PER_PAGE", "2")

    result = runner.invoke(app, ["front-page", fixture_path, "--now", NOW.isoformat(), "--page", "1", "--json"])

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert [(s["id"], s["position"]) for s in payload["stories"]] == [(1, 3)]
    assert payload["prev_page"] == 0


def test_discussion(runner, fixture_path):
    result = runner.invoke(app, ["discussion", fixture_path, "1", "--now", NOW.isoformat(), "--viewer", "2"])

    assert result.exit_code == 0, result.output
    lines = result.stdout.splitlines()
    assert lines[0] == "Old but popular (21 points by alice 2 days ago)"
    assert "[1] alice, today: First!" in lines
    assert "  [0] bob, today: Not quite *" in lines
    assert "[1] bob, today: Late to the party * (editable)" in lines
    assert lines[-1] == "(1 replies to missing comments not shown)"


def test_discussion_json_by_rank(runner, fixture_path):
    result = runner.invoke(
        app, ["discussion", fixture_path, "1", "--now", NOW.isoformat(), "--order", "rank", "--json"]
    )

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert [c["id"] for c in payload["comments"][0]["children"]] == [3, 2]
    assert payload["orphans"] == [9]


def test_missing_story(runner, fixture_path):
    result = runner.invoke(app, ["discussion", fixture_path, "42", "--now", NOW.isoformat()])
    assert result.exit_code == 1


@pytest.mark.parametrize(
    "args",
    [
        ["front-page", "{fixture}", "--now", "yesterday"],
        ["front-page", "{fixture}", "--order", "hot"],
        ["front-page", "{fixture}", "--viewer", "99"],
        ["discussion", "{fixture}", "1", "--order", "created"],
    ],
)
def test_bad_parameters(runner, fixture_path, args):
    result = runner.invoke(app, [a.format(fixture=fixture_path) for a in args])
    assert result.exit_code == 2


def test_missing_fixture_file(runner, tmp_path):
    result = runner.invoke(app, ["front-page", str(tmp_path / "nowhere.yaml")])
    assert result.exit_code == 2


@pytest.mark.parametrize(
    "broken",
    [
        # Comment on a story the fixture does not hold.
        {"comments": [{"id": 1, "item_id": 5, "body": "x", "author_id": 1, "created_at": NOW.isoformat()}]},
        # Story without a title.
        {"items": [{"id": 1, "author_id": 1, "body": "x", "created_at": NOW.isoformat()}]},
    ],
)
def test_broken_fixture(runner, tmp_path, broken):
    path = tmp_path / "broken.yaml"
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(broken, f)

    result = runner.invoke(app, ["discussion", str(path), "1"])

    assert result.exit_code == 1
    assert "Error:" in result.output
