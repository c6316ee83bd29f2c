"""
Static translation table between destination-chain denoms and source-chain symbols.
"""

import json
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class SymbolTranslator:
    """
    Translates token symbols between the two ledgers.

    The table is keyed by destination denom, e.g. ``{"ceth": "eth"}``.
    Symbols with no entry translate to themselves.
    """

    def __init__(self, sifchain_to_ethereum: dict[str, str] | None = None):
        self.sifchain_to_ethereum: dict[str, str] = dict(sifchain_to_ethereum or {})
        self.ethereum_to_sifchain_map: dict[str, str] = {
            symbol: denom for denom, symbol in self.sifchain_to_ethereum.items()
        }
        if len(self.ethereum_to_sifchain_map) != len(self.sifchain_to_ethereum):
            raise ValueError("Symbol translation table maps two denoms to one symbol")

    @classmethod
    def from_json_file(cls, path: str | Path) -> "SymbolTranslator":
        """Load a translation table from a JSON object file."""
        table_path = Path(path).resolve()
        with table_path.open() as file:
            table = json.load(file)

        if not isinstance(table, dict) or not all(
            isinstance(k, str) and isinstance(v, str) for k, v in table.items()
        ):
            raise ValueError(f"Symbol translation table must be a string to string object: {table_path}")

        logger.info(f"Loaded {len(table)} symbol translations from {table_path}")
        return cls(table)

    def ethereum_to_sifchain(self, symbol: str) -> str:
        return self.ethereum_to_sifchain_map.get(symbol, symbol)

    def sifchain_to_ethereum_symbol(self, denom: str) -> str:
        return self.sifchain_to_ethereum.get(denom, denom)
