from __future__ import annotations

import json
import logging
from pathlib import Path

from ..errors import RateStoreUnavailableError

logger = logging.getLogger(__name__)

RATES_KEY = "authorPayoutRates"


class RateStore:
    """Author -> rate table kept in a local-storage style JSON file.

    The file holds a JSON object of string keys, with the rate table under
    ``authorPayoutRates``. Other keys in the file are preserved on write. When
    the file cannot be read or written the store keeps working from memory for
    the rest of the session and ``available`` turns False.
    """

    def __init__(self, path: Path, key: str = RATES_KEY) -> None:
        self.path = path
        self.key = key
        self.available = True
        self._rates: dict[str, int] | None = None

    def load(self) -> dict[str, int]:
        return dict(self._table())

    def get(self, author: str) -> int | None:
        return self._table().get(author)

    def set(self, author: str, rate: int) -> None:
        rates = self._table()
        rates[author] = rate
        if not self.available:
            return
        try:
            self._write_rates(rates)
        except RateStoreUnavailableError as exc:
            self._degrade(exc)

    def _table(self) -> dict[str, int]:
        if self._rates is None:
            try:
                self._rates = self._read_rates()
            except RateStoreUnavailableError as exc:
                self._degrade(exc)
                self._rates = {}
        return self._rates

    def _degrade(self, exc: RateStoreUnavailableError) -> None:
        if self.available:
            logger.warning("%s; payout rates will only be kept in memory", exc)
        self.available = False

    def _load_file(self) -> dict[str, object]:
        try:
            if not self.path.exists():
                return {}
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise RateStoreUnavailableError(f"cannot read {self.path}: {exc}") from exc
        except ValueError:
            logger.warning("Ignoring unreadable rate file %s", self.path)
            return {}
        if isinstance(data, dict):
            return data
        return {}

    def _read_rates(self) -> dict[str, int]:
        raw = self._load_file().get(self.key)
        if isinstance(raw, str):
            # Browser local storage keeps the table as a JSON string.
            try:
                raw = json.loads(raw)
            except ValueError:
                raw = None
        if not isinstance(raw, dict):
            return {}
        rates: dict[str, int] = {}
        for author, value in raw.items():
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                continue
            rates[str(author)] = max(0, int(value))
        return rates

    def _write_rates(self, rates: dict[str, int]) -> None:
        try:
            payload = self._load_file()
            payload[self.key] = dict(rates)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        except OSError as exc:
            raise RateStoreUnavailableError(f"cannot write {self.path}: {exc}") from exc
