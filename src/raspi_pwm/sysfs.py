import logging
import os
import time

logger = logging.getLogger(__name__)

SYSFS_PATH = "/sys/class/pwm"

CHANNEL_ATTRIBUTES = ("period", "duty_cycle", "enable")


class PWMChip:
    """File access to one ``pwmchipN`` directory of the sysfs PWM class."""

    def __init__(self, chip: int, sysfs_path: str = SYSFS_PATH):
        self.chip = chip
        self.chip_path = os.path.join(sysfs_path, f"pwmchip{chip}")

    def exists(self) -> bool:
        return os.path.isdir(self.chip_path)

    def channel_path(self, channel: int) -> str:
        return os.path.join(self.chip_path, f"pwm{channel}")

    def available_channels(self) -> range:
        with open(os.path.join(self.chip_path, "npwm"), "r") as f:
            npwm = int(f.read().strip())
        return range(0, npwm)

    def _write_control(self, name: str, channel: int) -> None:
        path = os.path.join(self.chip_path, name)
        with open(path, "w") as f:
            f.write(str(channel))

    def export(self, channel: int) -> None:
        self._write_control("export", channel)
        logger.info("Exported pwm%d on pwmchip%d", channel, self.chip)

    def unexport(self, channel: int) -> None:
        self._write_control("unexport", channel)
        logger.info("Unexported pwm%d on pwmchip%d", channel, self.chip)

    def write_attribute(self, channel: int, name: str, value) -> None:
        path = os.path.join(self.channel_path(channel), name)
        logger.debug("%s <- %s", path, value)
        with open(path, "w") as f:
            f.write(str(value))

    def wait_for_channel(self, channel: int, timeout: float = 1.0) -> None:
        """Block until the channel attributes exist and are writable.

        The kernel creates ``pwmN/`` right after an export, but udev may still be
        fixing up ownership, so the first writes can fail with EACCES.
        """
        paths = [
            os.path.join(self.channel_path(channel), name)
            for name in CHANNEL_ATTRIBUTES
        ]
        start = time.time()
        while time.time() - start < timeout:
            if all(os.access(path, os.W_OK) for path in paths):
                return
            time.sleep(0.05)

        raise PermissionError(
            f"Timeout waiting for write access to {self.channel_path(channel)}"
        )
