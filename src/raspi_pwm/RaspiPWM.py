import errno
import logging
import math

from .sysfs import SYSFS_PATH, PWMChip

logger = logging.getLogger(__name__)

DEFAULT_FREQUENCY = 2  # Hz
DEFAULT_DUTY_CYCLE = 50  # percent
DUTY_CYCLE_RANGE = range(0, 101)
EXPORT_TIMEOUT = 1.0  # seconds

NS_PER_SECOND = 1_000_000_000

# Errors the kernel returns when unexporting a channel that is not exported
UNEXPORTED_ERRNOS = (errno.ENODEV, errno.EINVAL)


class PWMError(Exception):
    """Base class for all PWM related errors."""


class UnknownChipError(PWMError):
    """The requested PWM chip has no sysfs directory."""


class UnknownChannelError(PWMError):
    """The requested channel id is not provided by the chip."""

    def __init__(self, channel: int, available: range):
        self.channel = channel
        self.available = available
        super().__init__(
            f"Unknown PWM channel: {channel}! Only {list(available)} are available"
        )


class NotExportedError(PWMError):
    """The channel was already cleaned up."""


class InvalidArgumentError(PWMError, ValueError):
    """An invalid value was passed to a constructor or property setter."""


def bool_to_int(value: bool) -> int:
    return 1 if value else 0


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _timing_ns(frequency, duty_cycle: int):
    """Return (period_ns, duty_cycle_ns) for a frequency in Hz and a duty cycle in %."""
    period = NS_PER_SECOND / frequency
    if not math.isfinite(period):
        raise InvalidArgumentError(f"Frequency {frequency} Hz is too low")
    period_ns = _round_half_up(period)
    if period_ns < 1:
        raise InvalidArgumentError(f"Frequency {frequency} Hz is too high")
    # integer form of round(period * duty / 100)
    duty_cycle_ns = (period_ns * duty_cycle * 2 + 100) // 200
    return period_ns, duty_cycle_ns


def _errno_name(error: OSError) -> str:
    return errno.errorcode.get(error.errno, str(error.errno))


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class RaspiPWM:
    """A single exported channel of a sysfs PWM chip.

    Construction resets the channel (unexport, then export) so nothing left behind
    by a previous process leaks into this session. Every change of frequency or
    duty cycle goes through :meth:`_write_timing`, which never lets the hardware
    duty_cycle exceed the hardware period.

    Example::

        with RaspiPWM(channel=0, chip=0) as pwm:
            pwm.frequency = 1000
            pwm.duty_cycle = 25
            pwm.enabled = True
    """

    def __init__(self, channel: int, chip: int = 0, sysfs_path: str = SYSFS_PATH):
        if not isinstance(channel, int) or isinstance(channel, bool) or channel < 0:
            raise InvalidArgumentError("Channel must be a non-negative integer")
        if not isinstance(chip, int) or isinstance(chip, bool) or chip < 0:
            raise InvalidArgumentError("Chip must be a non-negative integer")

        self._chip = chip
        self._channel = channel
        self._pwmchip = PWMChip(chip, sysfs_path)
        self._exported = False
        self._enabled = False

        if not self._pwmchip.exists():
            raise UnknownChipError(
                f"PWM chip {chip} does not exist at {self._pwmchip.chip_path}"
            )
        self._verify_channel()

        self._frequency = DEFAULT_FREQUENCY
        self._duty_cycle = DEFAULT_DUTY_CYCLE
        self._period_ns, self._duty_cycle_ns = _timing_ns(
            self._frequency, self._duty_cycle
        )

        self._unexport_channel()
        self._export_channel()

    @property
    def chip(self) -> int:
        return self._chip

    @property
    def channel(self) -> int:
        return self._channel

    @property
    def exported(self) -> bool:
        return self._exported

    @property
    def frequency(self):
        """Signal frequency in Hz."""
        return self._frequency

    @frequency.setter
    def frequency(self, new_frequency) -> None:
        self._ensure_exported()
        if not _is_number(new_frequency) or not math.isfinite(new_frequency):
            raise InvalidArgumentError("Frequency must be a finite number")
        if new_frequency <= 0:
            raise InvalidArgumentError("Frequency must be positive")

        period_ns, duty_cycle_ns = _timing_ns(new_frequency, self._duty_cycle)
        self._write_timing(period_ns, duty_cycle_ns)
        self._frequency = new_frequency
        self._period_ns, self._duty_cycle_ns = period_ns, duty_cycle_ns

    @property
    def duty_cycle(self) -> int:
        """Share of the period the signal is active, in percent (0..100)."""
        return self._duty_cycle

    @duty_cycle.setter
    def duty_cycle(self, new_duty_cycle: int) -> None:
        self._ensure_exported()
        if (
            not isinstance(new_duty_cycle, int)
            or isinstance(new_duty_cycle, bool)
            or new_duty_cycle not in DUTY_CYCLE_RANGE
        ):
            raise InvalidArgumentError(
                "The duty cycle value has to be an integer between "
                f"{DUTY_CYCLE_RANGE.start} and {DUTY_CYCLE_RANGE.stop - 1}"
            )

        period_ns, duty_cycle_ns = _timing_ns(self._frequency, new_duty_cycle)
        self._write_timing(period_ns, duty_cycle_ns)
        self._duty_cycle = new_duty_cycle
        self._period_ns, self._duty_cycle_ns = period_ns, duty_cycle_ns

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._ensure_exported()
        self._write("enable", bool_to_int(value))
        self._enabled = bool(value)

    def cleanup(self) -> None:
        """Disable the output and unexport the channel. Safe to call twice."""
        if not self._exported:
            return

        try:
            if self._enabled:
                self._write("enable", bool_to_int(False))
        finally:
            self._enabled = False
            self._unexport_channel()

    def _ensure_exported(self) -> None:
        if not self._exported:
            raise NotExportedError("The channel was already unexported")

    def _write(self, name: str, value) -> None:
        self._pwmchip.write_attribute(self._channel, name, value)

    def _write_timing(self, period_ns: int, duty_cycle_ns: int) -> None:
        # duty_cycle is zeroed first so it stays <= period whichever way they move
        was_enabled = self._enabled
        if was_enabled:
            self._write("enable", bool_to_int(False))
            self._enabled = False

        try:
            self._write("duty_cycle", 0)
            self._write("period", period_ns)
            self._write("duty_cycle", duty_cycle_ns)
        finally:
            if was_enabled:
                self._write("enable", bool_to_int(True))
                self._enabled = True

    def _verify_channel(self) -> None:
        available = self._pwmchip.available_channels()
        if self._channel not in available:
            raise UnknownChannelError(self._channel, available)

    def _unexport_channel(self) -> None:
        try:
            self._pwmchip.unexport(self._channel)
        except OSError as e:
            if e.errno not in UNEXPORTED_ERRNOS:
                raise
            logger.debug(
                "pwm%d on pwmchip%d was not exported (%s)",
                self._channel,
                self._chip,
                _errno_name(e),
            )
        finally:
            self._exported = False

    def _export_channel(self) -> None:
        self._pwmchip.export(self._channel)
        self._exported = True
        try:
            self._pwmchip.wait_for_channel(self._channel, timeout=EXPORT_TIMEOUT)
        except BaseException:
            logger.error(
                "pwm%d on pwmchip%d did not come up, unexporting",
                self._channel,
                self._chip,
            )
            self._unexport_channel()
            raise

    def __repr__(self) -> str:
        return (
            f"RaspiPWM(chip={self._chip}, channel={self._channel}, "
            f"frequency={self._frequency}, duty_cycle={self._duty_cycle}, "
            f"enabled={self._enabled}, exported={self._exported})"
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.cleanup()