"""Tests for the command line entry point."""

import argparse

import numpy as np
import pytest

from fractal_terrain import cli
from fractal_terrain.config import Settings, settings


def answers(*values):
    """input() replacement returning the given answers in order."""
    replies = iter(values)
    prompts = []

    def _input(prompt=""):
        prompts.append(prompt)
        return next(replies)

    _input.prompts = prompts
    return _input


def empty_args(**overrides):
    args = argparse.Namespace(exponent=None, dimension=None, seed=None, sigma=None)
    for key, value in overrides.items():
        setattr(args, key, value)
    return args


class TestPromptParameters:
    """Test interactive parameter entry."""

    def test_all_prompts(self):
        input_fn = answers("3", "2.4", "17", "0.5")
        args = cli.prompt_parameters(empty_args(), input_fn=input_fn)

        assert (args.exponent, args.dimension, args.seed, args.sigma) == (3, 2.4, 17, 0.5)
        assert input_fn.prompts[1] == "Enter D (fractal dimension 2.0-3.0): "

    def test_dimension_reprompted(self):
        """An out-of-range D is asked for again, never clamped."""
        input_fn = answers("3", "3.5", "1.2", "2.7", "1", "1.0")
        args = cli.prompt_parameters(empty_args(), input_fn=input_fn)

        assert args.dimension == 2.7
        assert input_fn.prompts.count("D must be between 2.0 and 3.0. Try again: ") == 2

    def test_non_numeric_reprompted(self):
        input_fn = answers("abc", "2", "2.5", "4", "1")
        args = cli.prompt_parameters(empty_args(), input_fn=input_fn)

        assert args.exponent == 2
        assert "Please enter a number: " in input_fn.prompts

    def test_empty_answer_uses_default(self):
        input_fn = answers("", "", "", "")
        args = cli.prompt_parameters(empty_args(), input_fn=input_fn)

        assert args.exponent == settings.default_exponent
        assert args.dimension == settings.default_dimension
        assert args.seed == settings.default_seed
        assert args.sigma == settings.default_sigma

    def test_non_finite_sigma_reprompted(self):
        input_fn = answers("2", "2.5", "1", "inf", "nan", "0.5")
        args = cli.prompt_parameters(empty_args(), input_fn=input_fn)

        assert args.sigma == 0.5
        assert input_fn.prompts.count("sigma must be a non-negative number. Try again: ") == 2

    def test_given_values_not_prompted(self):
        input_fn = answers("2.5")
        args = cli.prompt_parameters(
            empty_args(exponent=2, seed=1, sigma=1.0), input_fn=input_fn
        )

        assert args.dimension == 2.5
        assert len(input_fn.prompts) == 1


class TestMain:
    """Test the full command."""

    def test_generates_scene(self, tmp_path, capsys):
        output = tmp_path / "terrain.rd"
        status = cli.main(["-n", "2", "-D", "2.5", "--seed", "42", "--sigma", "1.0",
                           "-o", str(output)])

        assert status == 0
        lines = output.read_text().splitlines()
        assert lines[lines.index('PolySet "PC"') + 1] == "25 32"
        assert "successfully exported" in capsys.readouterr().out

    def test_derived_filename(self, tmp_path):
        status = cli.main(["-n", "2", "-D", "2.5", "--seed", "1042",
                           "--output-dir", str(tmp_path / "scenes")])

        assert status == 0
        assert (tmp_path / "scenes" / "t2d2_5s42.rd").exists()

    def test_invalid_dimension_rejected(self, tmp_path):
        output = tmp_path / "terrain.rd"

        with pytest.raises(SystemExit) as exc:
            cli.main(["-n", "2", "-D", "3.5", "-o", str(output)])

        assert exc.value.code == 2
        assert not output.exists()

    def test_exponent_limit(self, tmp_path, monkeypatch):
        monkeypatch.setattr(settings, "max_exponent", 4)

        with pytest.raises(SystemExit) as exc:
            cli.main(["-n", "5", "-D", "2.5", "-o", str(tmp_path / "t.rd")])

        assert exc.value.code == 2

    def test_export_failure(self, tmp_path):
        status = cli.main(["-n", "2", "-D", "2.5", "-o", str(tmp_path / "missing" / "t.rd")])

        assert status == 1
        assert not (tmp_path / "missing").exists()

    def test_output_dir_not_creatable(self, tmp_path):
        """An output directory under a regular file is reported, not raised."""
        blocker = tmp_path / "blocker"
        blocker.write_text("")

        status = cli.main(["-n", "2", "-D", "2.5", "--output-dir", str(blocker / "sub")])

        assert status == 1
        assert blocker.is_file()

    @pytest.mark.parametrize("sigma", ["inf", "nan"])
    def test_non_finite_sigma_rejected(self, tmp_path, sigma):
        output = tmp_path / "terrain.rd"

        with pytest.raises(SystemExit) as exc:
            cli.main(["-n", "2", "-D", "2.5", "--sigma", sigma, "-o", str(output)])

        assert exc.value.code == 2
        assert not output.exists()

    def test_save_heights(self, tmp_path):
        heights = tmp_path / "heights.npy"
        status = cli.main(["-n", "3", "-D", "2.2", "-o", str(tmp_path / "t.rd"),
                           "--save-heights", str(heights)])

        assert status == 0
        assert np.load(heights).shape == (9, 9)

    def test_interactive(self, tmp_path):
        output = tmp_path / "terrain.rd"
        status = cli.main(["-i", "-o", str(output)],
                          input_fn=answers("2", "4.0", "2.5", "42", "1.0"))

        assert status == 0
        assert output.exists()


class TestSettings:
    """Test environment-driven configuration."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("TERRAIN_DEFAULT_EXPONENT", raising=False)
        config = Settings(_env_file=None)

        assert config.default_exponent == 7
        assert config.default_dimension == 2.2
        assert config.log_format == "plain"

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("TERRAIN_DEFAULT_SEED", "99")
        monkeypatch.setenv("TERRAIN_LOG_LEVEL", "DEBUG")
        config = Settings(_env_file=None)

        assert config.default_seed == 99
        assert config.log_level == "DEBUG"
