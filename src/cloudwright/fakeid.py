from __future__ import annotations

import random

FAKE_ID_PREFIXES = {
    "instance": "i-",
    "subnet": "subnet-",
    "vpc": "vpc-",
    "volume": "vol-",
    "securitygroup": "sg-",
    "internetgateway": "igw-",
}
DEFAULT_PREFIX = "dryrunid-"


def fake_dry_run_id(entity: str) -> str:
    """Return a throwaway identifier shaped like a real ``entity`` id."""
    prefix = FAKE_ID_PREFIXES.get(entity, DEFAULT_PREFIX)
    return f"{prefix}{random.randrange(1_000_000)}"
