"""
Tests for the command-line interface.
"""

import pytest

from ..cli import main


SAVE_TEXT = """\
Computer:
   Squares: 1 2 3 4 5 0 0 0 0
   Score: 4

Human:
   Squares: 0 0 0 0 0 0 0 0 9
   Score: 10

First Turn: Human
Next Turn: Human

# Phase: awaitingMove
# CurrentDice: 4 5 (sum=9)
"""


class TestCLI:

    def test_simulate(self, capsys, monkeypatch):
        monkeypatch.delenv("CANOGA_DEFAULT_BOARD_SIZE", raising=False)
        main(["simulate", "--rounds", "1", "--seed", "3", "--quiet"])
        out = capsys.readouterr().out
        assert "Round 1:" in out
        assert "Player 1 (Computer):" in out

    def test_inspect(self, tmp_path, capsys):
        save_file = tmp_path / "game.txt"
        save_file.write_text(SAVE_TEXT, encoding="utf-8")
        main(["inspect", str(save_file)])
        out = capsys.readouterr().out
        assert "phase awaitingMove" in out
        assert "Pending roll: 9" in out
        assert "cover: [9]" in out

    def test_inspect_corrupt(self, tmp_path, capsys):
        save_file = tmp_path / "game.txt"
        save_file.write_text("nothing here", encoding="utf-8")
        with pytest.raises(SystemExit) as exc:
            main(["inspect", str(save_file)])
        assert exc.value.code == 1
        assert "CORRUPT_SNAPSHOT" in capsys.readouterr().out

    def test_no_command(self):
        with pytest.raises(SystemExit):
            main([])
