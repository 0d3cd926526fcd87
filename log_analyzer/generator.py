"""Sample access-log generator for demos and load checks."""

import random
from datetime import datetime, timedelta

METHODS = ["GET", "GET", "GET", "POST", "PUT", "DELETE"]
PATHS = ["/api/users", "/api/orders", "/api/products", "/api/login", "/health"]
STATUS_WEIGHTS = {"200": 0.70, "201": 0.08, "304": 0.07, "404": 0.08, "500": 0.05, "503": 0.02}


def generate_line(rng: random.Random, when: datetime) -> str:
    status = rng.choices(list(STATUS_WEIGHTS), weights=list(STATUS_WEIGHTS.values()))[0]
    return (
        f"[{when:%Y-%m-%d %H:%M:%S}] "
        f"{rng.choice(METHODS)} {rng.choice(PATHS)} {status} "
        f"{rng.randint(1, 2000)}ms "
        f"192.168.{rng.randint(0, 3)}.{rng.randint(1, 254)}"
    )


def generate_lines(count: int, seed: int | None = None, malformed_rate: float = 0.0,
                   start: datetime | None = None) -> list[str]:
    """Generate *count* lines; a *malformed_rate* share is truncated to 3 fields."""
    rng = random.Random(seed)
    when = start or datetime(2025, 10, 17, 10, 0, 0)
    lines = []
    for _ in range(count):
        line = generate_line(rng, when)
        if malformed_rate and rng.random() < malformed_rate:
            line = " ".join(line.split()[:5])  # timestamp (2 tokens) + 3 fields
        lines.append(line)
        when += timedelta(milliseconds=rng.randint(1, 500))
    return lines
