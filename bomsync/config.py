"""Import configuration and runtime settings.

`BomConfig` is the per-user mapping configuration (designator columns, field
aliases, KiCad sync parameters, designator meanings). It round-trips through
the camelCase document shape stored in user settings.

`Settings` holds process-level knobs read from the environment. A `.env`
file is loaded first when one is present.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from dotenv import load_dotenv

from .schema import (
    DEFAULT_ALTERNATE_DESIGNATOR_COLUMNS,
    DEFAULT_DESIGNATOR_COLUMN,
    DEFAULT_DESIGNATOR_MEANINGS,
    DEFAULT_FIELD_MAPPINGS,
    DEFAULT_KICAD_SYNC_PARAMS,
    DEFAULT_LPN_COUNTER_KEY,
    DEFAULT_LPN_PREFIX,
)

logger = logging.getLogger(__name__)

SETTINGS_CONFIG_KEY = "users/{user_id}/settings/config"


@dataclass
class BomConfig:
    """Column discovery and alias mapping rules for one user."""
    designator_column: str = DEFAULT_DESIGNATOR_COLUMN
    alternate_designator_columns: List[str] = field(
        default_factory=lambda: list(DEFAULT_ALTERNATE_DESIGNATOR_COLUMNS)
    )
    field_mappings: List[Tuple[str, str]] = field(
        default_factory=lambda: list(DEFAULT_FIELD_MAPPINGS)
    )
    kicad_sync_params: List[str] = field(
        default_factory=lambda: list(DEFAULT_KICAD_SYNC_PARAMS)
    )
    designator_meanings: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_DESIGNATOR_MEANINGS)
    )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BomConfig":
        """Build a config from the stored document shape.

        Missing keys fall back to the defaults. `fieldMappings` may be either
        a mapping (insertion order is kept) or a list of `[source, canonical]`
        pairs.

        Args:
            data: Dictionary using camelCase keys (`designatorColumn`, ...)

        Returns:
            BomConfig instance
        """
        defaults = cls()

        mappings = data.get("fieldMappings")
        if mappings is None:
            field_mappings = defaults.field_mappings
        elif isinstance(mappings, Mapping):
            field_mappings = [(str(k), str(v)) for k, v in mappings.items()]
        else:
            field_mappings = [(str(k), str(v)) for k, v in mappings]

        alternates = data.get("alternateDesignatorColumns")
        if alternates is None:
            alternates = defaults.alternate_designator_columns

        return cls(
            designator_column=data.get("designatorColumn") or defaults.designator_column,
            alternate_designator_columns=list(alternates),
            field_mappings=field_mappings,
            kicad_sync_params=list(data.get("kicadSyncParams") or defaults.kicad_sync_params),
            designator_meanings=dict(data.get("designatorMeanings") or defaults.designator_meanings),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the stored document shape."""
        return {
            "designatorColumn": self.designator_column,
            "alternateDesignatorColumns": list(self.alternate_designator_columns),
            "fieldMappings": {source: target for source, target in self.field_mappings},
            "kicadSyncParams": list(self.kicad_sync_params),
            "designatorMeanings": dict(self.designator_meanings),
        }

    @classmethod
    def coerce(cls, config: Any) -> Optional["BomConfig"]:
        """Return a BomConfig for `config`, or None if it is absent or unusable."""
        if config is None:
            return None
        if isinstance(config, cls):
            return config
        if isinstance(config, Mapping):
            try:
                return cls.from_dict(config)
            except (TypeError, ValueError) as e:
                logger.warning(f"Ignoring invalid BOM config: {e}")
                return None
        return None

    def expected_designator_columns(self) -> List[str]:
        """Primary designator column followed by the alternates."""
        return [self.designator_column, *self.alternate_designator_columns]


def load_config(path: str) -> BomConfig:
    """Load a BomConfig from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid JSON or not a JSON object
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")
    return BomConfig.from_dict(data)


def save_user_config(store, user_id: str, config: BomConfig) -> None:
    """Persist a user's config in the document store."""
    store.set(SETTINGS_CONFIG_KEY.format(user_id=user_id), config.to_dict())


def load_user_config(store, user_id: str) -> BomConfig:
    """Load a user's config from the document store, defaults if never saved."""
    data = store.get(SETTINGS_CONFIG_KEY.format(user_id=user_id))
    if not data:
        return BomConfig()
    return BomConfig.from_dict(data)


@dataclass
class Settings:
    """Process-level settings."""
    db_url: Optional[str] = None
    db_host: Optional[str] = None
    db_port: int = 5432
    db_name: Optional[str] = None
    db_user: Optional[str] = None
    db_password: Optional[str] = None
    lpn_prefix: str = DEFAULT_LPN_PREFIX
    lpn_counter_key: str = DEFAULT_LPN_COUNTER_KEY
    config_path: Optional[str] = None

    def bom_config(self) -> BomConfig:
        """The BomConfig named by `config_path`, or the defaults."""
        if self.config_path:
            return load_config(self.config_path)
        return BomConfig()


def load_settings(env_file: Optional[str] = None) -> Settings:
    """Read settings from the environment.

    Args:
        env_file: Optional path to a .env file. When omitted, a `.env` in the
                  current directory is loaded if it exists. Variables already
                  set in the environment are not overridden.

    Returns:
        Settings instance
    """
    if env_file:
        load_dotenv(env_file)
    elif Path(".env").exists():
        load_dotenv(".env")

    return Settings(
        db_url=os.getenv("BOMSYNC_DB_URL") or None,
        db_host=os.getenv("BOMSYNC_DB_HOST"),
        db_port=int(os.getenv("BOMSYNC_DB_PORT", "5432")),
        db_name=os.getenv("BOMSYNC_DB_NAME"),
        db_user=os.getenv("BOMSYNC_DB_USER"),
        db_password=os.getenv("BOMSYNC_DB_PASSWORD"),
        lpn_prefix=os.getenv("BOMSYNC_LPN_PREFIX", DEFAULT_LPN_PREFIX),
        lpn_counter_key=os.getenv("BOMSYNC_LPN_COUNTER_KEY", DEFAULT_LPN_COUNTER_KEY),
        config_path=os.getenv("BOMSYNC_CONFIG") or None,
    )
