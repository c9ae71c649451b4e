"""Tests for the one-shot command-line front end."""

import json

import pytest

from py_memsim.cli import build_parser, main


def _snapshots(out: str) -> list[dict[str, object]]:
    """Split the concatenated JSON documents printed by ``main``."""
    decoder = json.JSONDecoder()
    docs: list[dict[str, object]] = []
    index = 0
    text = out.strip()
    while index < len(text):
        doc, index = decoder.raw_decode(text, index)
        docs.append(doc)
        while index < len(text) and text[index].isspace():
            index += 1
    return docs


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in ("MEMSIM_CAPACITY", "MEMSIM_FRAME_SIZE", "MEMSIM_PARTITION_SIZE"):
        monkeypatch.delenv(key, raising=False)


class TestParser:
    """Verify argument ordering."""

    def test_actions_keep_command_line_order(self) -> None:
        """Actions are recorded in the order given."""
        args = build_parser().parse_args(
            ["--allocate", "100", "--algorithm", "best-fit", "--deallocate", "1", "--status"]
        )
        assert [a[0] for a in args.actions] == ["allocate", "deallocate", "status"]
        assert args.actions[0][1:] == [100, "best-fit"]

    def test_allocate_defaults_to_first_fit(self) -> None:
        """An allocation without --algorithm uses first-fit."""
        args = build_parser().parse_args(["--allocate", "10"])
        assert args.actions[0][2] == "first-fit"

    def test_algorithm_requires_allocate(self) -> None:
        """--algorithm on its own is a usage error."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--algorithm", "best-fit"])


class TestMain:
    """Verify the JSON output."""

    def test_snapshot_after_each_action(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Each action prints one snapshot."""
        assert main(["--allocate", "100", "--algorithm", "best-fit", "--deallocate", "1"]) == 0
        docs = _snapshots(capsys.readouterr().out)
        assert len(docs) == 2
        assert docs[0]["used"] == 100
        assert docs[1]["used"] == 0
        assert docs[1]["next_owner"] == 2

    def test_status_only(self, capsys: pytest.CaptureFixture[str]) -> None:
        """--status prints the pristine state."""
        main(["--status"])
        (doc,) = _snapshots(capsys.readouterr().out)
        assert doc["capacity"] == 1024
        assert doc["blocks"] == [{"start": 0, "size": 1024, "status": "free", "owner": None}]

    def test_no_actions_prints_nothing(self, capsys: pytest.CaptureFixture[str]) -> None:
        """Without actions there is no output."""
        assert main([]) == 0
        assert capsys.readouterr().out == ""

    def test_capacity_flag_overrides_env(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Flags win over MEMSIM_* variables."""
        monkeypatch.setenv("MEMSIM_CAPACITY", "2048")
        main(["--capacity", "512", "--status"])
        (doc,) = _snapshots(capsys.readouterr().out)
        assert doc["capacity"] == 512

    def test_env_capacity_is_used(
        self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Without flags the environment decides."""
        monkeypatch.setenv("MEMSIM_CAPACITY", "2048")
        main(["--status"])
        (doc,) = _snapshots(capsys.readouterr().out)
        assert doc["capacity"] == 2048

    @pytest.mark.parametrize("flag", ["--capacity", "--frame-size", "--partition-size"])
    def test_zero_dimension_is_a_usage_error(self, flag: str) -> None:
        """An explicit zero is validated, not mistaken for an absent flag."""
        with pytest.raises(SystemExit):
            main([flag, "0", "--status"])

    def test_invalid_config_is_a_usage_error(self) -> None:
        """A capacity that is not a whole number of frames is refused."""
        with pytest.raises(SystemExit):
            main(["--capacity", "1022", "--status"])
