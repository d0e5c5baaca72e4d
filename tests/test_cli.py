import os
from unittest import mock
import pytest
from dummy_load.__main__ import build_parser, main, parse_settings
from dummy_load.config import Settings


def test_parse_defaults() -> None:
    assert parse_settings([]) == Settings()


@pytest.mark.parametrize(
    "argv",
    [
        ["--threads", "4", "--cpu", "50", "--mem", "64", "--time", "200", "--jitter", "0.2"],
        ["-threads", "4", "-cpu", "50", "-mem", "64", "-time", "200", "-jitter", "0.2"],
        ["-threads=4", "-cpu=50", "-mem=64", "-time=200", "-jitter=0.2"],
    ],
)
def test_parse_all_flags(argv: list) -> None:
    assert parse_settings(argv) == Settings(threads=4, cpu=50.0, mem=64, time=200, jitter=0.2)


@pytest.mark.parametrize(
    "argv",
    [
        ["--threads", "0"],
        ["--mem", "lots"],
        ["--cpu", "x"],
        ["--unknown"],
        ["-jitter", "nan"],
        ["-jitter", "inf"],
        ["-cpu", "inf"],
        ["-cpu", "nan"],
    ],
)
def test_bad_flags_exit(argv: list, capsys: pytest.CaptureFixture) -> None:
    with pytest.raises(SystemExit) as excinfo:
        parse_settings(argv)
    assert excinfo.value.code == 2
    assert "usage: dummy-load" in capsys.readouterr().err


def test_help_lists_options() -> None:
    help_text = build_parser().format_help()
    for flag in ("--threads", "--cpu", "--mem", "--time", "--jitter"):
        assert flag in help_text


@mock.patch.dict(os.environ, {}, clear=False)
@mock.patch("dummy_load.__main__.uvicorn.run")
def test_main_starts_workers(mock_run: mock.MagicMock, capsys: pytest.CaptureFixture) -> None:
    main(["--threads", "4", "--cpu", "25", "--time", "100"])
    mock_run.assert_called_once_with(
        "dummy_load.app:create_app",
        factory=True,
        host="0.0.0.0",
        port=8080,
        workers=4,
        log_level=mock.ANY,
    )
    assert os.environ["DUMMY_LOAD_THREADS"] == "4"
    assert os.environ["DUMMY_LOAD_CPU"] == "25.0"
    assert Settings.from_env() == Settings(threads=4, cpu=25.0, time=100)
    out = capsys.readouterr().out
    assert "Listening on :8080 | threads=4 cpu=25.0% mem=0MB time=100ms jitter=0.00" in out
