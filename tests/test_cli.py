"""Tests for the command line interface."""


class TestCLI:
    """Test cases for main() sub-commands."""

    def run(self, temp_db_path, *args):
        from finance_tracker.main import main

        return main(["--db", str(temp_db_path), *args])

    def test_no_command_prints_help(self, capsys):
        """Should print help and exit 0 without a command."""
        from finance_tracker.main import main

        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()

    def test_add_and_list_series(self, temp_db_path, capsys):
        """Should create a series and list it."""
        assert self.run(temp_db_path, "add-series", "Rent", "1200", "--start", "2026-01-31") == 0
        assert "Created series 1" in capsys.readouterr().out

        assert self.run(temp_db_path, "series") == 0
        assert "Rent" in capsys.readouterr().out

    def test_add_series_invalid(self, temp_db_path, capsys):
        """Should report invalid input with exit code 1."""
        assert self.run(temp_db_path, "add-series", "Rent", "1200", "--start", "2026-02-30") == 1
        assert "Error" in capsys.readouterr().out

    def test_occurrences_preview(self, temp_db_path, capsys):
        """Should print the dates in a window."""
        self.run(temp_db_path, "add-series", "Rent", "1200", "--start", "2026-01-31")
        capsys.readouterr()

        assert self.run(temp_db_path, "occurrences", "1", "2026-01-01", "2026-04-30") == 0
        out = capsys.readouterr().out
        assert "4 dates" in out
        assert "2026-02-01" in out

    def test_pause_resume_and_missing(self, temp_db_path, capsys):
        """Should pause and resume, and fail for unknown series."""
        self.run(temp_db_path, "add-series", "Gym", "30", "-f", "weekly", "--start", "2026-01-05")

        assert self.run(temp_db_path, "pause", "1", "--date", "2026-03-01") == 0
        assert self.run(temp_db_path, "resume", "1") == 0
        assert self.run(temp_db_path, "pause", "42") == 1
        assert self.run(temp_db_path, "delete-series", "1") == 0
        assert self.run(temp_db_path, "delete-series", "1") == 1

    def test_export_to_file(self, temp_db_path, tmp_path):
        """Should write CSV to the output file."""
        output = tmp_path / "out.csv"
        self.run(temp_db_path, "add-series", "Rent", "1200", "--start", "2026-01-31", "--end", "2026-03-31")

        assert self.run(temp_db_path, "export", "-o", str(output)) == 0
        assert output.read_text().splitlines()[0].startswith("id,date")
        assert len(output.read_text().splitlines()) == 4

    def test_goals_add_fund_and_list(self, temp_db_path, capsys):
        """Should create, fund and list a savings goal."""
        assert self.run(temp_db_path, "goals") == 0
        assert "No savings goals" in capsys.readouterr().out

        assert self.run(temp_db_path, "add-goal", "Bike", "800", "--deadline", "2026-09-01") == 0
        assert "Created goal 1" in capsys.readouterr().out

        assert self.run(temp_db_path, "fund-goal", "1", "800") == 0
        assert "Goal reached" in capsys.readouterr().out

        assert self.run(temp_db_path, "goals", "--status", "completed") == 0
        assert "Bike" in capsys.readouterr().out

    def test_goal_errors(self, temp_db_path, capsys):
        """Should report invalid goals and unknown ids with exit code 1."""
        assert self.run(temp_db_path, "add-goal", "Bike", "0") == 1
        assert "Error" in capsys.readouterr().out
        assert self.run(temp_db_path, "fund-goal", "7", "10") == 1

    def test_reset_requires_confirmation(self, temp_db_path, capsys):
        """Should only reset with --yes."""
        self.run(temp_db_path, "add-series", "Rent", "1200", "--start", "2026-01-31", "--end", "2026-03-31")
        capsys.readouterr()

        assert self.run(temp_db_path, "reset") == 1
        assert "--yes" in capsys.readouterr().out

        assert self.run(temp_db_path, "reset", "--yes") == 0
        assert "recurring_series: 1" in capsys.readouterr().out
        assert self.run(temp_db_path, "delete-series", "1") == 1
