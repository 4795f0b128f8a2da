"""Display helpers shared by the insight rules"""


def ordinal(n: int) -> str:
    """1 -> '1st', 12 -> '12th', 23 -> '23rd'"""
    if 10 <= n % 100 <= 20:
        suffix = 'th'
    else:
        suffix = {1: 'st', 2: 'nd', 3: 'rd'}.get(n % 10, 'th')
    return f"{n}{suffix}"


def ms_to_lap_time(ms: float) -> str:
    """Format milliseconds as m:ss.mmm ('-' when unset)"""
    if ms <= 0:
        return "-"
    minutes = int(ms // 60000)
    seconds = (ms % 60000) / 1000
    if minutes > 0:
        return f"{minutes}:{seconds:06.3f}"
    return f"{seconds:.3f}"


def signed_seconds(ms: float, suffix: str = "s") -> str:
    """Signed seconds with millisecond precision, e.g. '-0.412s'"""
    return f"{ms / 1000:+.3f}{suffix}"


def plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"
