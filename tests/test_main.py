import pytest
from unittest import mock

from raspi_pwm import main as cli
from raspi_pwm.RaspiPWM import NotExportedError


def run(sysfs, *extra):
    return cli.main(["--channel", "2", "--sysfs-path", str(sysfs), *extra])


class TestArguments:
    """Test command line parsing."""

    def test_defaults(self):
        args = cli.parse_args(["--channel", "1"])

        assert args.chip == 0
        assert args.channel == 1
        assert args.frequency == 2
        assert args.duty_cycle == 50
        assert args.duration is None
        assert args.sysfs_path == "/sys/class/pwm"

    def test_channel_is_required(self):
        with pytest.raises(SystemExit):
            cli.parse_args([])


class TestMain:
    """Test running a channel from the command line."""

    def test_run_for_duration(self, sysfs, read_attribute):
        assert run(sysfs, "--frequency", "100", "--duty-cycle", "25",
                   "--duration", "0") == 0

        assert read_attribute("period") == "10000000"
        assert read_attribute("duty_cycle") == "2500000"
        # cleanup switched the output off again
        assert read_attribute("enable") == "0"

    def test_applies_settings_and_cleans_up(self, monkeypatch):
        pwm_class = mock.Mock()
        monkeypatch.setattr(cli, "RaspiPWM", pwm_class)

        assert cli.main(["--chip", "1", "--channel", "0", "--duration", "0"]) == 0

        pwm_class.assert_called_once_with(channel=0, chip=1, sysfs_path="/sys/class/pwm")
        pwm = pwm_class.return_value
        assert pwm.frequency == 2
        assert pwm.duty_cycle == 50
        assert pwm.enabled is True
        pwm.cleanup.assert_called_once()

    def test_unknown_chip_exits_with_error(self, sysfs):
        assert run(sysfs, "--chip", "7") == 1

    def test_invalid_duty_cycle_exits_with_error(self, sysfs):
        assert run(sysfs, "--duty-cycle", "150", "--duration", "0") == 1

    def test_malformed_npwm_exits_with_error(self, sysfs):
        (sysfs / "pwmchip0" / "npwm").write_text("garbage\n")

        assert run(sysfs) == 1

    def test_cleanup_failure_exits_with_error(self, monkeypatch):
        pwm_class = mock.Mock()
        pwm_class.return_value.cleanup.side_effect = OSError(5, "I/O error")
        monkeypatch.setattr(cli, "RaspiPWM", pwm_class)

        assert cli.main(["--channel", "0", "--duration", "0"]) == 1

    def test_keyboard_interrupt_cleans_up(self, monkeypatch):
        pwm_class = mock.Mock()
        monkeypatch.setattr(cli, "RaspiPWM", pwm_class)
        monkeypatch.setattr(cli.time, "sleep", mock.Mock(side_effect=KeyboardInterrupt))

        assert cli.main(["--channel", "0"]) == 0

        pwm_class.return_value.cleanup.assert_called_once()

    def test_failure_while_running_cleans_up(self, monkeypatch):
        pwm_class = mock.Mock()
        type(pwm_class.return_value).enabled = mock.PropertyMock(
            side_effect=NotExportedError("The channel was already unexported")
        )
        monkeypatch.setattr(cli, "RaspiPWM", pwm_class)

        assert cli.main(["--channel", "0", "--duration", "0"]) == 1

        pwm_class.return_value.cleanup.assert_called_once()
