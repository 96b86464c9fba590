from __future__ import annotations
import logging
import pandas as pd
from pydantic import ValidationError
from typing import List, Optional, Tuple

from luckyday.models.schema import DataSourceConfig, Participant, Prize, WinningRecord

logger = logging.getLogger(__name__)

SHEET_PRIZES = "Prizes"
SHEET_PARTICIPANTS = "Participants"
SHEET_WINNERS = "Winners"


class DataSourceError(ValueError):
    pass


def _as_int(value) -> Optional[int]:
    try:
        f = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    if f != f or not f.is_integer():
        return None
    return int(f)


def _as_float(value) -> Optional[float]:
    try:
        f = float(str(value).strip())
    except (TypeError, ValueError):
        return None
    return None if f != f else f


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, float) and value != value) or str(value).strip() == ""


def parse_history(text) -> Tuple[WinningRecord, ...]:
    """Parse ``"2024:3;2020:0"`` (year:level pairs) into winning records."""
    if _is_blank(text):
        return ()
    records = []
    for chunk in str(text).split(";"):
        chunk = chunk.strip()
        if not chunk:
            continue
        year, sep, level = chunk.partition(":")
        y, lv = _as_int(year), _as_int(level)
        if not sep or y is None or lv is None:
            raise ValueError(f"invalid winning record: {chunk!r}")
        records.append(WinningRecord(year=y, prize_level=lv))
    return tuple(records)


def _participants_from_frame(df: pd.DataFrame, source: str) -> List[Participant]:
    columns = [str(c).strip().lower() for c in df.columns]
    history_idx = columns.index("history") if "history" in columns else None
    participants = []
    for i, row in enumerate(df.itertuples(index=False), start=2):
        if len(row) < 2:
            continue
        pid, name = _as_int(row[0]), row[1]
        if pid is None or _is_blank(name):
            logger.warning("%s: skipping row %d, invalid id or empty name", source, i)
            continue
        try:
            history = parse_history(row[history_idx]) if history_idx is not None else ()
        except ValueError as exc:
            logger.warning("%s: skipping row %d, %s", source, i, exc)
            continue
        participants.append(Participant(id=pid, name=str(name).strip(), winning_history=history))
    return participants


def load_participants_from_csv(path: str) -> List[Participant]:
    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False)
    except pd.errors.EmptyDataError:
        return []
    except (OSError, pd.errors.ParserError) as exc:
        raise DataSourceError(f"cannot read CSV file {path}: {exc}") from exc
    participants = _participants_from_frame(df, path)
    logger.info("loaded %d participant(s) from CSV file %s", len(participants), path)
    return participants


def _read_sheet(path: str, sheet: str) -> pd.DataFrame:
    try:
        df = pd.read_excel(path, sheet_name=sheet, dtype=object, engine="openpyxl")
    except (OSError, ValueError, KeyError) as exc:
        raise DataSourceError(f"cannot read sheet {sheet} of {path}: {exc}") from exc
    df = df.dropna(how="all")
    if df.empty:
        raise DataSourceError(f"{sheet} sheet of {path} is empty or only contains header")
    return df


def load_participants_from_excel(path: str) -> List[Participant]:
    df = _read_sheet(path, SHEET_PARTICIPANTS)
    participants = _participants_from_frame(df, f"{path}[{SHEET_PARTICIPANTS}]")
    logger.info("loaded %d participant(s) from Excel file %s", len(participants), path)
    return participants


def load_prizes_from_excel(path: str, language: str = "zh") -> List[Prize]:
    """Prizes from the ``Prizes`` sheet.

    Columns are read by position: ID, Name (CN), Name (EN), Count, Level,
    Probability. Rows with an unparsable number are skipped.
    """
    df = _read_sheet(path, SHEET_PRIZES)
    prizes = []
    for i, row in enumerate(df.itertuples(index=False), start=2):
        if len(row) < 6:
            continue
        pid, count, level, probability = _as_int(row[0]), _as_int(row[3]), _as_int(row[4]), _as_float(row[5])
        if None in (pid, count, level, probability):
            logger.warning("%s: skipping prize row %d, invalid number", path, i)
            continue
        name = row[1]
        if language == "en" and not _is_blank(row[2]):
            name = row[2]
        try:
            prize = Prize(id=pid, name=str(name).strip(), level=level, count=count, probability=probability)
        except ValidationError as exc:
            logger.warning("%s: skipping prize row %d, %s", path, i, exc)
            continue
        prizes.append(prize)
    logger.info("loaded %d prize(s) from Excel file %s", len(prizes), path)
    return prizes


def load_participants(config: DataSourceConfig) -> List[Participant]:
    if config.type == "csv":
        return load_participants_from_csv(config.csv.path)
    if config.type == "excel":
        return load_participants_from_excel(config.excel.path)
    if config.type == "db":
        from luckyday.datasource.database import load_participants_from_db
        return load_participants_from_db(config.database.url)
    raise DataSourceError(f"unknown data source type: {config.type}")
