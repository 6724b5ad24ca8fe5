"""Preferences for tourbooks.

Provides data-driven configuration with sensible defaults, loaded from
``preferences.json`` in a config directory and deep-merged over the defaults.
"""

import copy
import json
import logging
import os
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Optional

from tourbooks.core.models import TdsTransactionType

logger = logging.getLogger(__name__)

CONFIG_DIR_ENV = "TOURBOOKS_CONFIG_DIR"
PREFERENCES_FILE = "preferences.json"

DEFAULT_PREFERENCES = {
    "$schema": "tourbooks_preferences_v1",
    "version": "1.0",

    "display": {
        "currency_symbol": "₹",
        "decimal_places": 2,
        "date_format": "%d-%b-%Y",
        "negative_in_brackets": True
    },

    "tds": {
        "default_transaction_type": "INCOME_TAX"
    }
}


@dataclass
class DisplayConfig:
    """Configuration for display formatting."""
    currency_symbol: str = "₹"
    decimal_places: int = 2
    date_format: str = "%d-%b-%Y"
    negative_in_brackets: bool = True

    def format_currency(self, amount) -> str:
        """Format amount with currency symbol."""
        amount = Decimal(str(amount))
        if amount < 0 and self.negative_in_brackets:
            return f"({self.currency_symbol}{abs(amount):,.{self.decimal_places}f})"
        return f"{self.currency_symbol}{amount:,.{self.decimal_places}f}"

    def format_date(self, value: Optional[date]) -> str:
        return value.strftime(self.date_format) if value else ""


@dataclass
class TdsConfig:
    """Defaults for TDS resolution."""
    default_transaction_type: TdsTransactionType = TdsTransactionType.INCOME_TAX


class Preferences:
    """
    Preferences with fallback to defaults.

    Usage:
        prefs = Preferences.load(config_dir)
        formatted = prefs.display.format_currency(1234.56)
    """

    def __init__(self, data: Dict[str, Any]):
        """Initialize from preference dictionary."""
        self._raw = data

        display = data.get("display", {})
        self.display = DisplayConfig(
            currency_symbol=display.get("currency_symbol", "₹"),
            decimal_places=display.get("decimal_places", 2),
            date_format=display.get("date_format", "%d-%b-%Y"),
            negative_in_brackets=display.get("negative_in_brackets", True)
        )

        tds = data.get("tds", {})
        self.tds = TdsConfig(
            default_transaction_type=TdsTransactionType.parse(
                tds.get("default_transaction_type", "INCOME_TAX"),
                field="tds.default_transaction_type",
            )
        )

    @classmethod
    def defaults(cls) -> "Preferences":
        return cls(copy.deepcopy(DEFAULT_PREFERENCES))

    @classmethod
    def load(cls, config_dir: Optional[Path] = None) -> "Preferences":
        """
        Load preferences with fallback to defaults.

        Args:
            config_dir: Directory holding preferences.json; defaults to
                $TOURBOOKS_CONFIG_DIR when set

        Returns:
            Preferences instance

        Raises:
            ValidationError: If a preference holds an unknown value
        """
        data = copy.deepcopy(DEFAULT_PREFERENCES)

        if config_dir is None and os.environ.get(CONFIG_DIR_ENV):
            config_dir = Path(os.environ[CONFIG_DIR_ENV])

        if config_dir is not None:
            prefs_file = Path(config_dir) / PREFERENCES_FILE
            if prefs_file.exists():
                try:
                    with open(prefs_file, encoding='utf-8') as f:
                        data = cls._deep_merge(data, json.load(f))
                    logger.debug(f"Loaded preferences from {prefs_file}")
                except (OSError, json.JSONDecodeError) as e:
                    logger.warning(f"Failed to load preferences from {prefs_file}: {e}")

        return cls(data)

    @staticmethod
    def _deep_merge(base: Dict, override: Dict) -> Dict:
        """Deep merge two dictionaries, override takes precedence."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = Preferences._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    def save(self, config_dir: Path) -> None:
        """Save current preferences to the config directory."""
        config_dir.mkdir(parents=True, exist_ok=True)
        prefs_file = config_dir / PREFERENCES_FILE

        with open(prefs_file, 'w', encoding='utf-8') as f:
            json.dump(self._raw, f, indent=2, ensure_ascii=False)

        logger.info(f"Saved preferences to {prefs_file}")
