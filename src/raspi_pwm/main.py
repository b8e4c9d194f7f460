import argparse
import logging
import time

from .RaspiPWM import DEFAULT_DUTY_CYCLE, DEFAULT_FREQUENCY, PWMError, RaspiPWM
from .sysfs import SYSFS_PATH

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="raspi-pwm", description="Drive a sysfs PWM channel"
    )
    parser.add_argument("--chip", type=int, default=0)
    parser.add_argument("--channel", type=int, required=True)
    parser.add_argument("--frequency", type=float, default=DEFAULT_FREQUENCY,
                        help="frequency in Hz")
    parser.add_argument("--duty-cycle", type=int, default=DEFAULT_DUTY_CYCLE,
                        help="duty cycle in percent (0-100)")
    parser.add_argument("--duration", type=float, default=None,
                        help="seconds to keep the output on (default: until Ctrl+C)")
    parser.add_argument("--sysfs-path", default=SYSFS_PATH)
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        pwm = RaspiPWM(channel=args.channel, chip=args.chip, sysfs_path=args.sysfs_path)
    except (PWMError, OSError, ValueError) as e:
        # ValueError: npwm did not hold an integer
        logger.error("Cannot open PWM channel: %s", e)
        return 1

    exit_code = 0
    try:
        pwm.frequency = args.frequency
        pwm.duty_cycle = args.duty_cycle
        pwm.enabled = True
        logger.info("%r running", pwm)

        if args.duration is None:
            while True:
                time.sleep(1)
        else:
            time.sleep(args.duration)

    except KeyboardInterrupt:
        logger.info("Interrupted, disabling PWM...")

    except (PWMError, OSError) as e:
        logger.error("PWM failure: %s", e)
        exit_code = 1

    finally:
        try:
            pwm.cleanup()
        except (PWMError, OSError) as e:
            logger.error("PWM cleanup failed: %s", e)
            exit_code = 1

    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
