import os

import pytest

from snapshot_age_probe import config as probe_config
from snapshot_age_probe.errors import PreconditionError

ENV_VARS = ("VCENTER_HOST", "VCENTER_USER", "VCENTER_PASS", "SNAPSHOT_WARNING_HOURS", "SNAPSHOT_ERROR_HOURS")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(probe_config, "DEFAULT_ENV_PATH", tmp_path / "missing.env")


def test_load_config_defaults():
    cfg = probe_config.load_config(["--vi-server", "vc01", "--user", "monitor", "--password", "secret"])

    assert cfg.server == "vc01"
    assert cfg.user == "monitor"
    assert cfg.password == "secret"
    assert cfg.port == 443
    assert cfg.warning_hours == 24.0
    assert cfg.error_hours == 48.0
    assert cfg.replication_suffix == "_rep"
    assert probe_config.validate_config(cfg) == []


def test_load_config_prtg_style_parameters():
    cfg = probe_config.load_config(
        ["-ViServer", "https://vc01.example.local/", "-User", "u", "-Password", "p", "-WarningHours", "12", "-ErrorHours", "36.5"]
    )

    assert cfg.server == "vc01.example.local"
    assert cfg.warning_hours == 12.0
    assert cfg.error_hours == 36.5
    assert cfg.thresholds.warning_hours == 12.0
    assert cfg.credentials.server == "vc01.example.local"


def test_invalid_threshold_falls_back_to_default():
    cfg = probe_config.load_config(["--warning-hours", "soon", "--error-hours", ""])

    assert cfg.warning_hours == 24.0
    assert cfg.error_hours == 48.0


@pytest.mark.parametrize("value", ["nan", "inf", "-inf", "1e300", "2000000"])
def test_out_of_range_threshold_falls_back_to_default(value, caplog):
    with caplog.at_level("WARNING"):
        cfg = probe_config.load_config([f"--warning-hours={value}", f"--error-hours={value}"])

    assert cfg.warning_hours == 24.0
    assert cfg.error_hours == 48.0
    assert "Out of range number for WarningHours" in caplog.text


def test_large_but_representable_threshold_is_kept():
    cfg = probe_config.load_config(["--error-hours", "8760"])

    assert cfg.error_hours == 8760.0


def test_help_flag_does_not_exit():
    cfg = probe_config.load_config(["-h", "--vi-server", "vc01"])

    assert cfg.server == "vc01"


def test_password_starting_with_dash():
    cfg = probe_config.load_config(["-User", "u", "-Password=-x9", "--vi-server", "vc01"])

    assert cfg.password == "-x9"
    password_action = next(a for a in probe_config.build_parser()._actions if a.dest == "password")
    assert "--password=VALUE" in password_action.help


def test_env_fallback(monkeypatch):
    monkeypatch.setenv("VCENTER_HOST", "http://vc02")
    monkeypatch.setenv("VCENTER_USER", "env-user")
    monkeypatch.setenv("VCENTER_PASS", "env-pass")
    monkeypatch.setenv("SNAPSHOT_WARNING_HOURS", "6")

    cfg = probe_config.load_config([])

    assert cfg.server == "vc02"
    assert cfg.user == "env-user"
    assert cfg.password == "env-pass"
    assert cfg.warning_hours == 6.0
    assert cfg.error_hours == 48.0


def test_env_file_is_loaded(tmp_path):
    env_file = tmp_path / "probe.env"
    env_file.write_text("VCENTER_HOST=vc03\nVCENTER_USER=file-user\nVCENTER_PASS=file-pass\n")

    try:
        cfg = probe_config.load_config(["--env-file", str(env_file)])
    finally:
        for name in ("VCENTER_HOST", "VCENTER_USER", "VCENTER_PASS"):
            os.environ.pop(name, None)

    assert cfg.server == "vc03"
    assert cfg.user == "file-user"
    assert probe_config.validate_config(cfg) == []


def test_validate_reports_every_missing_parameter():
    cfg = probe_config.load_config([])

    assert probe_config.validate_config(cfg) == [
        "ViServer is not set",
        "User is not set",
        "Password is not set",
    ]


def test_unknown_arguments_are_ignored():
    cfg = probe_config.load_config(["--vi-server", "vc01", "--sensor-id", "1234"])

    assert cfg.server == "vc01"


def test_missing_option_value_raises_precondition_error():
    with pytest.raises(PreconditionError):
        probe_config.load_config(["--user"])


def test_inverted_thresholds_are_accepted(caplog):
    cfg = probe_config.load_config(
        ["--vi-server", "vc01", "--user", "u", "--password", "p", "--warning-hours", "48", "--error-hours", "24"]
    )

    with caplog.at_level("WARNING"):
        assert probe_config.validate_config(cfg) == []
    assert "lower than WarningHours" in caplog.text
