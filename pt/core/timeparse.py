from datetime import datetime

# Parses a 24-hour "HH:MM" string into the Unix timestamp of that wall-clock time on the local date of `now`
# (today if not given). Rolling a past time over to tomorrow is left to the caller.
def parse_time(text, now=None):
    parsed = datetime.strptime(text.strip(), "%H:%M")
    base = datetime.fromtimestamp(now) if now is not None else datetime.now()
    return int(base.replace(hour=parsed.hour, minute=parsed.minute, second=0, microsecond=0).timestamp())
