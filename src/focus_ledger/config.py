"""Configuration for Focus Ledger deployments."""

import json
import os
import re
from datetime import datetime, timedelta, timezone, tzinfo
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import pydantic
from pydantic import BaseModel

from focus_ledger import __version__
from focus_ledger.core.errors import ValidationError

HOME_ENV = "FOCUS_LEDGER_HOME"
TIMEZONE_ENV = "FOCUS_LEDGER_TZ"
DEFAULT_DATA_DIR = Path.home() / ".focus-ledger"
DEFAULT_TIMEZONE = "UTC"
CONFIG_FILE = "config.json"
STATE_FILE = "state.json"
DEBUG_LOG_FILE = "debug.log"

_OFFSET_RE = re.compile(r"^(?:UTC|GMT)?([+-])(\d{1,2}):?(\d{2})?$")


class TrackerConfig(BaseModel):
    """Settings resolved once per deployment."""

    data_dir: Path = DEFAULT_DATA_DIR
    timezone: str = DEFAULT_TIMEZONE
    version: str = __version__
    created: Optional[datetime] = None

    @property
    def config_file(self) -> Path:
        return self.data_dir / CONFIG_FILE

    @property
    def state_file(self) -> Path:
        return self.data_dir / STATE_FILE

    @property
    def debug_log(self) -> Path:
        return self.data_dir / DEBUG_LOG_FILE

    def exists(self) -> bool:
        """Check if the data directory has been initialized."""
        return self.config_file.exists()

    def tz(self) -> tzinfo:
        return resolve_timezone(self.timezone)

    def save(self) -> None:
        """Write config.json, creating the data directory if needed."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        payload = self.model_dump(mode="json", exclude={"data_dir"})
        self.config_file.write_text(json.dumps(payload, indent=2))


def resolve_timezone(name: str) -> tzinfo:
    """Turn a configured timezone name into a tzinfo.

    Accepts ``UTC``/``Z``, fixed offsets such as ``+03:00`` or ``-0530``,
    and IANA names such as ``Europe/Moscow``.
    """
    key = (name or "").strip()
    if not key:
        raise ValidationError("Timezone must not be empty")
    if key.upper() in ("UTC", "Z", "GMT"):
        return timezone.utc

    match = _OFFSET_RE.match(key)
    if match:
        sign, hours, minutes = match.groups()
        offset = timedelta(hours=int(hours), minutes=int(minutes or 0))
        if offset >= timedelta(hours=24):
            raise ValidationError(f"Timezone offset out of range: {name}")
        return timezone(-offset if sign == "-" else offset, key)

    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValidationError(f"Unknown timezone: {name!r}") from e


def load_config(
    data_dir: Optional[Path] = None, timezone_name: Optional[str] = None
) -> TrackerConfig:
    """Load the deployment config.

    Explicit arguments win over environment variables, which win over
    config.json, which wins over defaults.
    """
    if data_dir is None:
        env_home = os.environ.get(HOME_ENV)
        data_dir = Path(env_home).expanduser() if env_home else DEFAULT_DATA_DIR

    data_dir = Path(data_dir)
    stored = {}
    config_file = data_dir / CONFIG_FILE
    if config_file.exists():
        try:
            stored = json.loads(config_file.read_text())
        except json.JSONDecodeError as e:
            raise ValidationError(f"Corrupt config file {config_file}: {e}") from e
        if not isinstance(stored, dict):
            raise ValidationError(
                f"Corrupt config file {config_file}: expected a JSON object"
            )

    timezone_name = (
        timezone_name
        or os.environ.get(TIMEZONE_ENV)
        or stored.get("timezone")
        or DEFAULT_TIMEZONE
    )
    # Fail early on a bad timezone rather than at report time
    resolve_timezone(timezone_name)

    try:
        return TrackerConfig(
            data_dir=data_dir,
            timezone=timezone_name,
            version=stored.get("version", __version__),
            created=stored.get("created"),
        )
    except pydantic.ValidationError as e:
        raise ValidationError(f"Corrupt config file {config_file}: {e}") from e
