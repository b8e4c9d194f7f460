import pytest


@pytest.fixture
def sysfs(tmp_path):
    """Fake /sys/class/pwm with pwmchip0 (npwm=4) and an exported-looking pwm2."""
    chip = tmp_path / "pwmchip0"
    chip.mkdir()
    (chip / "npwm").write_text("4\n")
    (chip / "export").write_text("")
    (chip / "unexport").write_text("")

    channel = chip / "pwm2"
    channel.mkdir()
    for name in ("period", "duty_cycle", "enable"):
        (channel / name).write_text("0")

    return tmp_path


@pytest.fixture
def read_attribute(sysfs):
    """Read back an attribute of pwmchip0/pwm2 from the fake tree."""

    def read(name):
        return (sysfs / "pwmchip0" / "pwm2" / name).read_text()

    return read
