import signal

import pytest

from lan_survey.main import LanSurveyApp, create_argument_parser, main
from lan_survey.utils.error_handler import ErrorHandler, SegmentFileError


@pytest.fixture()
def app():
    previous = signal.getsignal(signal.SIGTERM)
    yield LanSurveyApp()
    signal.signal(signal.SIGTERM, previous)


def parse(*argv):
    return create_argument_parser().parse_args(list(argv))


def test_command_line_overrides_configuration(app, tmp_path):
    config_file = tmp_path / "survey.yml"
    config_file.write_text("snmp:\n  community: from-file\nwatch:\n  interval: 10\n", encoding="utf-8")

    config = app.build_config(parse(
        "segments.txt", "space.csv",
        "--config", str(config_file),
        "--output", "cycle.csv",
        "--watch", "--watch-interval", "30",
        "--snmp-community", "private",
        "--no-update-inventory", "--no-segment-overwrite",
    ))

    assert config.segments_path == "segments.txt"
    assert config.inventory.path == "space.csv"
    assert config.inventory.update_enabled is False
    assert config.inventory.segment_overwrite is False
    assert config.watch.enabled is True
    assert config.watch.interval == 30.0
    assert config.snmp.community == "private"
    assert config.output.path == "cycle.csv"


def test_file_values_stand_without_flags(app, tmp_path):
    config_file = tmp_path / "survey.yml"
    config_file.write_text("segments_file: seg.txt\nwatch:\n  enabled: true\n", encoding="utf-8")

    config = app.build_config(parse("--config", str(config_file)))

    assert config.segments_path == "seg.txt"
    assert config.watch.enabled is True

    config = app.build_config(parse("--config", str(config_file), "--once"))
    assert config.watch.enabled is False


def test_watch_and_once_are_exclusive():
    with pytest.raises(SystemExit):
        parse("--watch", "--once")


def test_missing_segment_list_exits_with_one(tmp_path):
    previous = signal.getsignal(signal.SIGTERM)
    try:
        empty_config = tmp_path / "empty.yml"
        empty_config.write_text("{}\n", encoding="utf-8")
        assert main(["--config", str(empty_config), "--skip-checks"]) == 1
    finally:
        signal.signal(signal.SIGTERM, previous)


def test_report_fatal_returns_exit_code():
    error = SegmentFileError("Segment line must contain a name and a CIDR", path="seg.txt", line_number=3)

    assert ErrorHandler().report_fatal(error) == 1
