"""
Trade ingestion for The Mindful Trader.

Supports:
- CSV import from broker exports: upload -> column mapping -> preview -> confirm
- JSON exports of the trades table (rows with joined journals)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional, Union
from zoneinfo import ZoneInfo
import json
import logging
import math

import pandas as pd
from pydantic import ValidationError

from mindful_trader.journal.models import Trade, TradeDirection
from mindful_trader.journal.schemas import TradeInput

logger = logging.getLogger(__name__)


@dataclass
class CSVParseResult:
    headers: list[str]
    rows: list[dict[str, str]]
    errors: list[str] = field(default_factory=list)


@dataclass
class InvalidRow:
    row_number: int  # 1-based
    errors: list[str]
    data: dict[str, Any]


@dataclass
class ImportPreview:
    """Rows split into those ready to import and those that need fixing."""

    valid_trades: list[dict[str, Any]] = field(default_factory=list)
    invalid_rows: list[InvalidRow] = field(default_factory=list)

    @property
    def total_rows(self) -> int:
        return len(self.valid_trades) + len(self.invalid_rows)

    def to_dict(self) -> dict:
        return {
            "total_rows": self.total_rows,
            "valid_trades": self.valid_trades,
            "invalid_rows": [
                {"row_number": r.row_number, "errors": r.errors, "data": r.data}
                for r in self.invalid_rows
            ],
        }


@dataclass
class ImportResult:
    imported: list[Trade] = field(default_factory=list)
    failed: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "imported": len(self.imported),
            "failed": len(self.failed),
            "results": {
                "successful": [{"ticker": t.ticker, "id": t.id} for t in self.imported],
                "failed": self.failed,
            },
        }


def read_csv(source: Union[str, Path, Any]) -> CSVParseResult:
    """
    Read a CSV export with a header row.

    Every cell is kept as text and blank lines are skipped. Parser problems
    are reported in the result rather than raised.

    Raises:
        FileNotFoundError: If a path is given and it does not exist
    """
    if isinstance(source, (str, Path)) and not Path(source).exists():
        raise FileNotFoundError(f"File not found: {source}")

    try:
        df = pd.read_csv(source, dtype=str, keep_default_na=False, skip_blank_lines=True)
    except pd.errors.EmptyDataError:
        return CSVParseResult(headers=[], rows=[], errors=["CSV file is empty"])
    except pd.errors.ParserError as e:
        logger.warning(f"CSV parse error: {e}")
        return CSVParseResult(headers=[], rows=[], errors=[str(e)])

    headers = [str(c) for c in df.columns]
    rows = [
        {h: row[h] for h in headers}
        for row in df.to_dict(orient="records")
        if any(str(v).strip() for v in row.values())
    ]
    logger.info(f"Read {len(rows)} rows with {len(headers)} columns")
    return CSVParseResult(headers=headers, rows=rows)


def auto_detect_column_mapping(headers: list[str]) -> dict[str, str]:
    """
    Guess which CSV column feeds each trade field from its header.

    Each header is matched against the rules in order and assigned to the
    first field it matches. When several headers match the same field, the
    later header wins.
    """
    mapping: dict[str, str] = {}
    for header in headers:
        lower = header.lower().strip()

        if "symbol" in lower or "ticker" in lower or lower == "sym":
            mapping["ticker"] = header
        elif "side" in lower or "direction" in lower or "action" in lower:
            mapping["direction"] = header
        elif ("entry" in lower or "open" in lower) and "date" in lower:
            mapping["entry_date"] = header
        elif ("exit" in lower or "close" in lower) and "date" in lower:
            mapping["exit_date"] = header
        elif ("entry" in lower or "open" in lower) and "price" in lower:
            mapping["entry_price"] = header
        elif ("exit" in lower or "close" in lower) and "price" in lower:
            mapping["exit_price"] = header
        elif any(k in lower for k in ("quantity", "qty", "shares", "size")):
            mapping["quantity"] = header
        elif any(k in lower for k in ("commission", "fees", "cost")):
            mapping["commissions"] = header

    return mapping


def _parse_number(value: Any) -> Optional[float]:
    if value is None:
        return None
    text = str(value).strip().replace("$", "").replace(",", "")
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def _normalize_direction(value: Any) -> Any:
    direction = str(value).lower()
    if "buy" in direction or "long" in direction:
        return TradeDirection.LONG.value
    if "sell" in direction or "short" in direction:
        return TradeDirection.SHORT.value
    return value


def _parse_date(value: Any, input_tz: str) -> Optional[str]:
    """ISO-8601 string; naive values are localized to input_tz."""
    if value is None or not str(value).strip():
        return None
    try:
        ts = pd.Timestamp(str(value).strip())
    except (TypeError, ValueError):
        return None
    if pd.isna(ts):
        return None
    if ts.tzinfo is None:
        # wall-clock times skipped or repeated by a DST change have no single instant
        ts = ts.tz_localize(ZoneInfo(input_tz), ambiguous="NaT", nonexistent="NaT")
        if pd.isna(ts):
            return None
    return ts.isoformat()


def map_csv_row_to_trade(
    row: dict[str, Any], mapping: dict[str, str], input_tz: str = "UTC"
) -> dict[str, Any]:
    """
    Convert one CSV row to a trade dict using a field -> column mapping.

    Unparsable numbers and dates become None and are reported by
    validate_trade.
    """
    trade: dict[str, Any] = {}
    for db_field, column in mapping.items():
        value = row.get(column)

        if db_field == "ticker":
            trade["ticker"] = str(value if value is not None else "").strip().upper()
        elif db_field == "direction":
            trade["direction"] = _normalize_direction(value)
        elif "price" in db_field or db_field == "commissions":
            trade[db_field] = _parse_number(value)
        elif db_field == "quantity":
            number = _parse_number(value)
            trade["quantity"] = int(number) if number is not None else None
        elif "date" in db_field:
            trade[db_field] = _parse_date(value, input_tz)
        else:
            trade[db_field] = value

    return trade


def validate_trade(trade: dict[str, Any]) -> tuple[bool, list[str]]:
    """Check the fields required to import a trade."""
    errors = []
    if not trade.get("ticker"):
        errors.append("Ticker is required")
    if trade.get("direction") not in ("long", "short"):
        errors.append('Direction must be "long" or "short"')
    if not trade.get("entry_date"):
        errors.append("Entry date is required")
    if not trade.get("entry_price") or trade["entry_price"] <= 0:
        errors.append("Entry price must be positive")
    if not trade.get("quantity") or trade["quantity"] <= 0:
        errors.append("Quantity must be positive")

    if trade.get("exit_date") and not trade.get("exit_price"):
        errors.append("Exit price required when exit date is provided")
    if trade.get("exit_price") and not trade.get("exit_date"):
        errors.append("Exit date required when exit price is provided")

    return len(errors) == 0, errors


def build_import_preview(
    rows: list[dict[str, Any]], mapping: dict[str, str], input_tz: str = "UTC"
) -> ImportPreview:
    """Map and validate every row; row numbers are 1-based."""
    preview = ImportPreview()
    for i, row in enumerate(rows, start=1):
        trade = map_csv_row_to_trade(row, mapping, input_tz)
        valid, errors = validate_trade(trade)
        if valid:
            preview.valid_trades.append(trade)
        else:
            preview.invalid_rows.append(InvalidRow(row_number=i, errors=errors, data=dict(row)))

    logger.info(
        f"Import preview: {len(preview.valid_trades)} valid, {len(preview.invalid_rows)} invalid"
    )
    return preview


def _validation_message(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in e['loc']) or 'trade'}: {e['msg']}" for e in error.errors()
    )


def confirm_import(trades: list[dict[str, Any]], tz: str = "UTC") -> ImportResult:
    """
    Turn previewed trade dicts into Trade objects with computed metrics.

    Rows failing schema validation are collected in the result, not raised.
    """
    result = ImportResult()
    for data in trades:
        try:
            validated = TradeInput.model_validate(
                {k: v for k, v in data.items() if v is not None}
            )
        except ValidationError as e:
            result.failed.append({"ticker": data.get("ticker"), "error": _validation_message(e)})
            continue

        trade = Trade(
            ticker=validated.ticker,
            direction=TradeDirection(validated.direction),
            entry_date=validated.entry_date,
            entry_price=validated.entry_price,
            quantity=validated.quantity,
            exit_date=validated.exit_date,
            exit_price=validated.exit_price,
            commissions=validated.commissions,
            initial_stop_loss=validated.initial_stop_loss,
            strategy_id=validated.strategy_id,
            notes=validated.notes,
            imported_from_csv=True,
        )
        trade.compute_metrics(tz)
        result.imported.append(trade)

    logger.info(f"Imported {len(result.imported)} trades, {len(result.failed)} errors")
    return result


def _load_json_rows(path: Path) -> list[dict[str, Any]]:
    with open(path) as f:
        payload = json.load(f)
    if isinstance(payload, dict):
        payload = payload.get("data", [])
    if not isinstance(payload, list):
        raise ValueError(f"Expected a list of trades in {path}")
    return payload


def load_trades(path: Union[str, Path], tz: str = "UTC") -> list[Trade]:
    """
    Load trades from a JSON export or a broker CSV.

    Args:
        path: .json (list of rows, or {"data": [...]}) or .csv file
        tz: Timezone used for weekday/hour derivation and naive CSV timestamps

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: For unsupported file types or malformed JSON rows
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    suffix = path.suffix.lower()
    if suffix == ".json":
        trades = []
        for i, row in enumerate(_load_json_rows(path), start=1):
            if not isinstance(row, dict):
                raise ValueError(f"Row {i}: expected an object")
            try:
                trades.append(Trade.from_row(row, tz))
            except ValueError as e:
                raise ValueError(f"Row {i}: {e}") from e
        logger.info(f"Loaded {len(trades)} trades from {path.name}")
        return trades

    if suffix == ".csv":
        parsed = read_csv(path)
        if parsed.errors:
            raise ValueError(f"Could not parse {path.name}: {'; '.join(parsed.errors)}")
        mapping = auto_detect_column_mapping(parsed.headers)
        preview = build_import_preview(parsed.rows, mapping, tz)
        for invalid in preview.invalid_rows:
            logger.warning(f"Skipping row {invalid.row_number}: {', '.join(invalid.errors)}")
        result = confirm_import(preview.valid_trades, tz)
        for failure in result.failed:
            logger.warning(f"Skipping {failure['ticker']}: {failure['error']}")
        return result.imported

    raise ValueError(f"Unsupported file type: {path.suffix or '(none)'} (expected .json or .csv)")
