import json
import logging
import os

import pytest

from main import main, parse_arguments
from models.constants import Constants
from utils.config import ConfigManager
from utils.logging import LoggingManager


@pytest.fixture(autouse=True)
def fresh_config():
    ConfigManager.reset_instance()
    yield
    ConfigManager.reset_instance()
    # Handlers hold on to the captured stderr of the test that installed them
    LoggingManager.get_instance().reset(logging.getLogger(Constants.LOGGER_NAME))


def cli_args(tmp_path, *extra):
    return [
        "--duration", "2",
        "--sample-rate", "8",
        "--frequencies", "1", "2", "4",
        "--seed", "3",
        "--cache-file", str(tmp_path / "cache.json"),
        "--publish-dir", str(tmp_path / "published"),
        "--no-play",
        *extra,
    ]


def cached_ref(tmp_path):
    with open(tmp_path / "cache.json") as f:
        return json.load(f)["generatedNoise"]


def test_parse_arguments():
    args = parse_arguments(["--regenerate", "--frequencies", "100", "200", "300", "--duration", "60"])
    assert args.regenerate
    assert args.frequencies == [100.0, 200.0, 300.0]
    assert args.duration == 60
    assert args.sample_rate is None
    assert not args.no_play


def test_first_run_generates_and_caches(tmp_path, capsys):
    assert main(cli_args(tmp_path)) == 0

    ref = cached_ref(tmp_path)
    assert ref.startswith("file://")
    assert len(os.listdir(tmp_path / "published")) == 1
    out = capsys.readouterr().out
    assert "[busy]" in out
    assert "[ready]" in out


def test_second_run_reuses_cached_track(tmp_path):
    assert main(cli_args(tmp_path)) == 0
    ref = cached_ref(tmp_path)
    published = os.listdir(tmp_path / "published")

    assert main(cli_args(tmp_path)) == 0
    assert cached_ref(tmp_path) == ref
    assert os.listdir(tmp_path / "published") == published


def test_missing_track_is_regenerated(tmp_path):
    assert main(cli_args(tmp_path)) == 0
    for name in os.listdir(tmp_path / "published"):
        os.remove(tmp_path / "published" / name)

    assert main(cli_args(tmp_path)) == 0
    assert len(os.listdir(tmp_path / "published")) == 1
    assert cached_ref(tmp_path).startswith("file://")


def test_output_option_exports_wav(tmp_path):
    assert main(cli_args(tmp_path, "--regenerate", "--output", str(tmp_path / "export"))) == 0
    assert os.path.getsize(tmp_path / "export.wav") == 44 + 16 * 4


def test_invalid_parameters_exit(tmp_path):
    with pytest.raises(SystemExit):
        main(cli_args(tmp_path, "--duration", "0"))
