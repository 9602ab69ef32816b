"""
Tests for CLI Commands
======================
Tests for the nomina CLI interface in nomina/cli.py.
"""

import json
import subprocess
import sys
from pathlib import Path

import pytest

# Ensure repo root is on path
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from nomina import __version__
from nomina.cli import main


class TestCLIBasic:
    """Basic CLI tests."""

    def test_version_flag(self):
        """Test --version flag."""
        result = subprocess.run(
            [sys.executable, "-m", "nomina", "--version"],
            capture_output=True,
            text=True,
            cwd=str(ROOT),
        )
        assert result.returncode == 0
        assert f"nomina {__version__}" in result.stdout.lower()

    def test_help_flag(self):
        """Test --help flag."""
        result = subprocess.run(
            [sys.executable, "-m", "nomina", "--help"],
            capture_output=True,
            text=True,
            cwd=str(ROOT),
        )
        assert result.returncode == 0
        assert "generate" in result.stdout
        assert "concepts" in result.stdout

    def test_generate_help(self):
        """Test generate --help."""
        result = subprocess.run(
            [sys.executable, "-m", "nomina", "generate", "--help"],
            capture_output=True,
            text=True,
            cwd=str(ROOT),
        )
        assert result.returncode == 0
        assert "--culture" in result.stdout
        assert "--seed" in result.stdout

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()


class TestCLICommands:
    """Commands against a seeded temporary catalog."""

    @pytest.fixture
    def db_path(self, tmp_path, capsys):
        path = tmp_path / "nomina.db"
        assert main(["--db", str(path), "seed"]) == 0
        assert "Imported" in capsys.readouterr().out
        return path

    def test_generate_json(self, db_path, capsys):
        assert main(["--db", str(db_path), "generate", "character", "--culture", "1",
                     "--seed", "cli", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert len(data) == 1
        assert data[0]['culture_id'] == 1
        assert data[0]['seed'] == "cli"

    def test_generate_batch_json(self, db_path, capsys):
        assert main(["--db", str(db_path), "gen", "place", "-n", "4", "--seed", "b", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert [d['kind'] for d in data] == ["place"] * 4

    def test_generate_parallel_json(self, db_path, capsys):
        assert main(["--db", str(db_path), "generate", "creature", "-n", "3", "--parallel",
                     "--workers", "2", "--seed", "p", "--json"]) == 0
        assert len(json.loads(capsys.readouterr().out)) == 3

    def test_generate_table(self, db_path, capsys):
        assert main(["--db", str(db_path), "generate", "--culture", "2", "--bio", "--seed", "t"]) == 0
        assert "seed: t" in capsys.readouterr().out

    def test_unknown_culture_is_an_error(self, db_path, capsys):
        assert main(["--db", str(db_path), "generate", "--culture", "99"]) == 1
        assert "Error:" in capsys.readouterr().err

    def test_cultures_json(self, db_path, capsys):
        assert main(["--db", str(db_path), "cultures", "--json"]) == 0
        names = [c['name'] for c in json.loads(capsys.readouterr().out)]
        assert "Elfique" in names

    def test_categories_in_univers(self, db_path, capsys):
        assert main(["--db", str(db_path), "categories", "--univers", "2", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data and all(c['univers_id'] == 2 for c in data)

    def test_concepts_json(self, db_path, capsys):
        assert main(["--db", str(db_path), "concepts", "--categorie", "3", "-n", "2",
                     "--seed", "c", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert len(data['items']) == 2
        assert all(item['hook'].startswith("Accroche") for item in data['items'])

    def test_concepts_pitch(self, db_path, capsys):
        assert main(["--db", str(db_path), "concepts", "-n", "1", "--seed", "c", "--pitch"]) == 0
        assert "Accroche" in capsys.readouterr().out

    def test_stats(self, db_path, capsys):
        assert main(["--db", str(db_path), "stats", "--json"]) == 0
        assert json.loads(capsys.readouterr().out)['total'] > 0

    def test_missing_database(self, tmp_path, capsys):
        assert main(["--db", str(tmp_path / "none.db"), "stats"]) == 1
        assert "not found" in capsys.readouterr().err
