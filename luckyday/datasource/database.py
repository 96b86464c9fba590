
import logging
import pandas as pd
from typing import List, Optional
from sqlalchemy import Column, ForeignKey, Integer, MetaData, String, Table, create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from luckyday.datasource.loaders import DataSourceError
from luckyday.models.schema import Participant, WinningRecord

logger = logging.getLogger(__name__)

metadata = MetaData()

participants_table = Table(
    "participants", metadata,
    Column("id", Integer, primary_key=True),
    Column("name", String(100), nullable=False),
)

winning_records_table = Table(
    "winning_records", metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("participant_id", Integer, ForeignKey("participants.id"), nullable=False, index=True),
    Column("year", Integer, nullable=False),
    Column("prize_level", Integer, nullable=False),
)


def build_participants_query(min_year: Optional[int] = None) -> str:
    join_on = "p.id = w.participant_id"
    if min_year is not None:
        join_on += " AND w.year >= :min_year"
    return f"""SELECT p.id, p.name, w.year, w.prize_level
FROM participants p
LEFT JOIN winning_records w ON {join_on}
ORDER BY p.id, w.year, w.id"""


def make_engine(url: str) -> Engine:
    engine = create_engine(url, future=True)
    # create missing tables
    metadata.create_all(engine)
    return engine


def load_participants_from_db(url: str, min_year: Optional[int] = None) -> List[Participant]:
    """Participants with their winning history, ordered by id.

    ``min_year`` drops history older than that year, which no longer moves
    the weight in any visible way.
    """
    params = {"min_year": min_year} if min_year is not None else {}
    try:
        engine = make_engine(url)
    except SQLAlchemyError as exc:
        raise DataSourceError(f"cannot load participants from database: {exc}") from exc
    try:
        with engine.connect() as conn:
            df = pd.read_sql(text(build_participants_query(min_year)), conn, params=params)
    except SQLAlchemyError as exc:
        raise DataSourceError(f"cannot load participants from database: {exc}") from exc
    finally:
        engine.dispose()

    participants = []
    for pid, rows in df.groupby("id", sort=False):
        history = tuple(
            WinningRecord(year=int(r.year), prize_level=int(r.prize_level))
            for r in rows.itertuples(index=False)
            if pd.notna(r.year) and pd.notna(r.prize_level)
        )
        participants.append(Participant(id=int(pid), name=str(rows["name"].iloc[0]), winning_history=history))
    logger.info("loaded %d participant(s) from database %s", len(participants), engine.url.render_as_string(hide_password=True))
    return participants
