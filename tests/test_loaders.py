import pandas as pd
import pytest

from luckyday.datasource.export import create_excel_template
from luckyday.datasource.loaders import (
    DataSourceError,
    load_participants,
    load_participants_from_csv,
    load_participants_from_excel,
    load_prizes_from_excel,
    parse_history,
)
from luckyday.models.schema import DataSourceConfig, WinningRecord


def test_parse_history():
    assert parse_history("2024:3; 2020:0") == (
        WinningRecord(year=2024, prize_level=3),
        WinningRecord(year=2020, prize_level=0),
    )
    assert parse_history("") == ()
    assert parse_history(float("nan")) == ()
    with pytest.raises(ValueError):
        parse_history("2024")


def test_csv_participants(tmp_path):
    path = tmp_path / "people.csv"
    path.write_text("id,name,history\n1,张三,\n2,李四,2024:3\nx,broken,\n3,,\n4,王五,bad\n5, 赵六 ,2020:0;2019:1\n",
                    encoding="utf-8")
    participants = load_participants_from_csv(str(path))
    assert [p.id for p in participants] == [1, 2, 5]
    assert participants[0].winning_history == ()
    assert participants[1].winning_history == (WinningRecord(year=2024, prize_level=3),)
    assert participants[2].name == "赵六"
    assert len(participants[2].winning_history) == 2


def test_csv_without_history_column(tmp_path):
    path = tmp_path / "people.csv"
    path.write_text("ID,Name\n1,Ann\n2,Bob\n", encoding="utf-8")
    assert [p.name for p in load_participants_from_csv(str(path))] == ["Ann", "Bob"]


def test_empty_csv(tmp_path):
    empty = tmp_path / "empty.csv"
    empty.write_text("", encoding="utf-8")
    header_only = tmp_path / "header.csv"
    header_only.write_text("id,name\n", encoding="utf-8")
    assert load_participants_from_csv(str(empty)) == []
    assert load_participants_from_csv(str(header_only)) == []


def test_missing_csv_raises(tmp_path):
    with pytest.raises(DataSourceError):
        load_participants_from_csv(str(tmp_path / "nope.csv"))


def test_excel_template_round_trip(tmp_path):
    path = str(tmp_path / "lottery.xlsx")
    create_excel_template(path)

    prizes = load_prizes_from_excel(path)
    assert [p.id for p in prizes] == [1, 2, 3, 4]
    assert prizes[0].name.startswith("特等奖")
    assert (prizes[1].count, prizes[1].level, prizes[1].probability) == (3, 1, 0.3)
    assert all(p.drawn_count == 0 for p in prizes)

    english = load_prizes_from_excel(path, language="en")
    assert english[0].name == "Grand Prize: Europe Luxury Tour"

    participants = load_participants_from_excel(path)
    assert len(participants) == 10
    by_id = {p.id: p for p in participants}
    assert by_id[1].name == "张三"
    assert by_id[2].winning_history == (WinningRecord(year=2024, prize_level=3),)
    assert by_id[1].winning_history == ()


def test_excel_skips_bad_prize_rows(tmp_path):
    path = str(tmp_path / "prizes.xlsx")
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(
            [[1, "A", "A", 1, 0, 0.5], [2, "B", "B", "many", 1, 0.5], [3, "C", "C", 2, 2, 1.5]],
            columns=["ID", "Name (CN)", "Name (EN)", "Count", "Level", "Probability"],
        ).to_excel(writer, sheet_name="Prizes", index=False)
    assert [p.id for p in load_prizes_from_excel(path)] == [1]


def test_excel_header_only_sheet_raises(tmp_path):
    path = str(tmp_path / "empty.xlsx")
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(columns=["ID", "Name"]).to_excel(writer, sheet_name="Participants", index=False)
    with pytest.raises(DataSourceError):
        load_participants_from_excel(path)
    with pytest.raises(DataSourceError):
        load_prizes_from_excel(path)


def test_load_participants_dispatch(tmp_path):
    path = tmp_path / "people.csv"
    path.write_text("id,name\n7,Gus\n", encoding="utf-8")
    config = DataSourceConfig.model_validate({"type": "csv", "csv": {"path": str(path)}})
    assert [p.id for p in load_participants(config)] == [7]

    with pytest.raises(DataSourceError):
        load_participants(DataSourceConfig(type="ftp"))
