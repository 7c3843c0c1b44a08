"""Click parameter types for the backoff options."""
import click


def _parse_delay(item: str) -> int:
    """Parse one delay table entry as a positive number of milliseconds.

    Args:
        item: Entry text, surrounding whitespace allowed.

    Raises:
        ValueError: If the entry is not a positive integer.
    """
    delay = int(item.strip())
    if delay <= 0:
        raise ValueError(f"delay must be positive, got {delay}")
    return delay


class DelayTable(click.ParamType):
    """Comma-separated list of retry delays in milliseconds."""

    name = "ms[,ms...]"

    def convert(self, value, param, ctx):
        """Convert '1000,2000,5000' into (1000, 2000, 5000)."""
        if isinstance(value, tuple):
            return value
        try:
            return tuple(_parse_delay(item) for item in value.split(","))
        except ValueError as e:
            self.fail(f"{value!r} is not a list of positive delays: {e}", param, ctx)
