"""Demo child process that writes output at a fixed interval.

Useful for trying out the supervisor by hand, e.g. a child that goes
quiet for longer than the output timeout:

    health-check --task-output-timeout 5 ... sleep-check -- --output-timeout 10
"""

import sys
import time
from typing import Annotated

from cyclopts import App, Parameter

STDOUT_BURST: int = 49

app = App(
    name="sleep-check",
    help="Print to stderr (and optionally stdout) forever, pausing in between.",
    help_on_error=True,
)


def emit(*, output_timeout: int, stdout_print: bool) -> None:
    """Write one round of output."""
    if stdout_print:
        for _ in range(STDOUT_BURST):
            print("Printing to stdout", flush=True)  # noqa: T201
    print(  # noqa: T201
        f"Printing to stderr {output_timeout}", file=sys.stderr, flush=True
    )


@app.default
def sleep_check(
    *,
    output_timeout: Annotated[
        int,
        Parameter(help="Seconds to wait before printing"),
    ] = 3,
    stdout_print: Annotated[
        bool,
        Parameter(help="Also print to stdout"),
    ] = False,
) -> None:
    """Print, sleep, repeat until killed."""
    while True:
        emit(output_timeout=output_timeout, stdout_print=stdout_print)
        time.sleep(output_timeout)


def main() -> None:
    """Entry point for the `sleep-check` script."""
    app()


if __name__ == "__main__":
    main()
