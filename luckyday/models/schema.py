
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional


class WinningRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    year: int
    prize_level: int


class Participant(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    name: str
    winning_history: tuple[WinningRecord, ...] = ()


class Prize(BaseModel):
    # drawn_count is the only field the engine writes to
    model_config = ConfigDict(validate_assignment=True)

    id: int
    name: str
    level: int = 0
    count: int = Field(ge=0)
    probability: float = Field(default=1.0, ge=0.0, le=1.0)
    drawn_count: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _drawn_within_count(self):
        if self.drawn_count > self.count:
            raise ValueError(f"drawn_count {self.drawn_count} exceeds count {self.count}")
        return self

    @property
    def remaining(self) -> int:
        return max(self.count - self.drawn_count, 0)

    @property
    def exhausted(self) -> bool:
        return self.drawn_count >= self.count


class CSVConfig(BaseModel):
    path: str = "participants.csv"


class ExcelConfig(BaseModel):
    path: str = "lottery_template.xlsx"


class DatabaseConfig(BaseModel):
    url: str = "sqlite:///lucky.db"


class DataSourceConfig(BaseModel):
    type: str = "excel"
    csv: CSVConfig = Field(default_factory=CSVConfig)
    excel: ExcelConfig = Field(default_factory=ExcelConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)


class CheckInConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8888
    rate: float = 10.0
    burst: int = 20


class AppConfig(BaseModel):
    datasource: DataSourceConfig = Field(default_factory=DataSourceConfig)
    prizes: List[Prize] = Field(default_factory=list)
    checkin: CheckInConfig = Field(default_factory=CheckInConfig)
    language: str = "zh"
    seed: Optional[int] = None
