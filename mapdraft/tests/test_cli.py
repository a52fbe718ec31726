"""
Tests for the command-line interface.
"""

import pytest

from ..cli import main


class TestPoolCommand:
    """Tests for `mapdraft pool`."""

    def test_prints_requested_number_of_maps(self, capsys):
        main(["pool", "--size", "3", "--seed", "7"])

        lines = capsys.readouterr().out.strip().splitlines()
        assert len(lines) == 3
        assert lines[0].startswith("1. ")

    def test_seeded_output_repeats(self, capsys):
        main(["pool", "--seed", "11"])
        first = capsys.readouterr().out
        main(["pool", "--seed", "11"])
        assert capsys.readouterr().out == first

    def test_oversized_draw_exits(self, capsys):
        with pytest.raises(SystemExit):
            main(["pool", "--size", "50"])
        assert "Error" in capsys.readouterr().out

    def test_no_command_prints_help(self):
        with pytest.raises(SystemExit):
            main([])
