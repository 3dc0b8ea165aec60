"""Settings read from the environment."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Sequence

from .loader import load_rules
from .service_rule import DEFAULT_RULES, ServiceRule


@dataclass
class Settings:
    """Where vehicle data lives, who the default owner is, and which rules apply."""

    data_dir: Path = Path("vehicles")
    owner_id: str = "default"
    rules_file: Optional[Path] = None
    secret_key: str = "dev-secret-key-change-in-prod"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        MAINT_DATA_DIR, MAINT_OWNER, MAINT_RULES_FILE, SECRET_KEY
        """
        env = os.environ if environ is None else environ
        rules_file = env.get("MAINT_RULES_FILE")
        return cls(
            data_dir=Path(env.get("MAINT_DATA_DIR", "vehicles")),
            owner_id=env.get("MAINT_OWNER", "default"),
            rules_file=Path(rules_file) if rules_file else None,
            secret_key=env.get("SECRET_KEY", cls.secret_key),
        )

    def load_rules(self) -> Sequence[ServiceRule]:
        """The configured rule table, or the built-in one."""
        if self.rules_file is None:
            return DEFAULT_RULES
        return load_rules(self.rules_file)
