
import hashlib, json, logging, os, time
from datetime import datetime
from typing import Iterable, Optional

import pandas as pd
from openpyxl import load_workbook

from luckyday.datasource.loaders import DataSourceError, SHEET_PARTICIPANTS, SHEET_PRIZES, SHEET_WINNERS
from luckyday.draw.engine import DrawEngine

logger = logging.getLogger(__name__)

WINNER_COLUMNS = ["Draw Time", "Prize Name", "Winner ID", "Winner Name", "Prize Level"]
DRAW_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

TEMPLATE_PRIZES = pd.DataFrame(
    [
        [1, "特等奖：欧洲豪华双人游", "Grand Prize: Europe Luxury Tour", 1, 0, 0.1],
        [2, "一等奖：最新款笔记本电脑", "First Prize: Latest Laptop", 3, 1, 0.3],
        [3, "二等奖：降噪耳机", "Second Prize: Noise-Canceling Headphones", 5, 2, 0.6],
        [4, "三等奖：阳光普照购物卡", "Third Prize: Shopping Card", 10, 3, 0.9],
    ],
    columns=["ID", "Name (CN)", "Name (EN)", "Count", "Level", "Probability"],
)

TEMPLATE_PARTICIPANTS = pd.DataFrame(
    [
        [1, "张三", "技术部", "zhangsan@company.com", ""],
        [2, "李四", "市场部", "lisi@company.com", "2024:3"],
        [3, "王五", "人力资源部", "wangwu@company.com", ""],
        [4, "赵六", "财务部", "zhaoliu@company.com", "2021:0"],
        [5, "孙七", "技术部", "sunqi@company.com", ""],
        [6, "周八", "市场部", "zhouba@company.com", ""],
        [7, "吴九", "运营部", "wujiu@company.com", "2023:2;2019:4"],
        [8, "郑十", "技术部", "zhengshi@company.com", ""],
        [9, "冯十一", "人力资源部", "fengshiyi@company.com", ""],
        [10, "陈十二", "财务部", "chenshier@company.com", ""],
    ],
    columns=["ID", "Name", "Department", "Email", "History"],
)


def winners_frame(engine: DrawEngine, draw_time: Optional[datetime] = None) -> pd.DataFrame:
    """One row per winner, prizes in configured order."""
    stamp = (draw_time or datetime.now()).strftime(DRAW_TIME_FORMAT)
    rows = []
    for prize in engine.prizes():
        for winner in engine.winners(prize.id):
            rows.append([stamp, prize.name, winner.id, winner.name, prize.level])
    return pd.DataFrame(rows, columns=WINNER_COLUMNS)


def save_winners_to_csv(path: str, frame: pd.DataFrame) -> str:
    # utf-8-sig so Excel opens Chinese names correctly
    frame.to_csv(path, index=False, encoding="utf-8-sig")
    logger.info("saved %d winner(s) to %s", len(frame), path)
    return path


def save_winners_to_excel(path: str, frame: pd.DataFrame) -> str:
    """Append ``frame`` to the Winners sheet of an existing workbook."""
    try:
        wb = load_workbook(path)
    except (OSError, ValueError) as exc:
        raise DataSourceError(f"cannot open Excel file {path}: {exc}") from exc
    ws = wb[SHEET_WINNERS] if SHEET_WINNERS in wb.sheetnames else wb.create_sheet(SHEET_WINNERS)
    if ws.max_row == 1 and ws["A1"].value is None:
        for col, title in enumerate(WINNER_COLUMNS, start=1):
            ws.cell(row=1, column=col, value=title)
    for row in frame[WINNER_COLUMNS].itertuples(index=False):
        ws.append([v.item() if hasattr(v, "item") else v for v in row])
    wb.save(path)
    logger.info("saved %d winner(s) to Excel file %s", len(frame), path)
    return path


def create_excel_template(path: str) -> str:
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        TEMPLATE_PRIZES.to_excel(writer, sheet_name=SHEET_PRIZES, index=False)
        TEMPLATE_PARTICIPANTS.to_excel(writer, sheet_name=SHEET_PARTICIPANTS, index=False)
        pd.DataFrame(columns=WINNER_COLUMNS).to_excel(writer, sheet_name=SHEET_WINNERS, index=False)
    logger.info("created Excel template %s", path)
    return path


def snapshot_hash(participant_ids: Iterable[int]):
    j = json.dumps(sorted(list(participant_ids)), ensure_ascii=False)
    return hashlib.sha256(j.encode()).hexdigest()


def write_audit(engine: DrawEngine, seed=None, outdir='runs'):
    os.makedirs(outdir, exist_ok=True)
    rec = {
        'seed': seed,
        'current_year': engine.current_year,
        'snapshot_hash': snapshot_hash(p.id for p in engine.participants()),
        'prizes': [
            {
                'id': prize.id,
                'name': prize.name,
                'level': prize.level,
                'count': prize.count,
                'drawn_count': prize.drawn_count,
                'winners': [w.id for w in engine.winners(prize.id)],
            }
            for prize in engine.prizes()
        ],
        'ts': int(time.time())
    }
    path = os.path.join(outdir, f'audit_{rec["ts"]}.json')
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(rec, f, ensure_ascii=False, indent=2)
    return path
