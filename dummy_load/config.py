"""Process configuration, read once at startup and shared read-only by every request."""

import os
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

# --- Config ---
HOST = "0.0.0.0"
PORT = 8080
LOG_LEVEL = os.getenv("LOG_LEVEL", "info")

ENV_PREFIX = "DUMMY_LOAD_"


class Settings(BaseModel):
    """Baseline per-request targets, before jitter."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    threads: int = Field(1, ge=1, description="Number of worker processes")
    cpu: float = Field(0.0, description="Target CPU utilization per request (0-100) of one core")
    mem: int = Field(0, description="Memory to allocate per request in MB (0-1024)")
    time: int = Field(0, description="Total time per request in ms (0-1000)")
    jitter: float = Field(0.0, description="Jitter factor (0-1.0), applied +/- per request")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is not None and raw != "":
                values[name] = raw
        return cls(**values)

    def to_env(self) -> Dict[str, str]:
        return {ENV_PREFIX + name.upper(): str(value) for name, value in self.model_dump().items()}

    def describe(self) -> str:
        return (
            f"threads={self.threads} cpu={self.cpu:.1f}% mem={self.mem}MB "
            f"time={self.time}ms jitter={self.jitter:.2f}"
        )
