
from typing import Dict

CHINESE = "zh"
ENGLISH = "en"

TRANSLATIONS: Dict[str, Dict[str, str]] = {
    ENGLISH: {
        "app.title": "Lucky Day Prize Draw",
        "app.language": "Language",
        "data.source": "Data source",
        "data.source_excel": "Excel file",
        "data.source_csv": "CSV file",
        "data.source_db": "Database",
        "data.source_qr": "QR check-in",
        "data.load": "Load data",
        "data.load_success": "Loaded",
        "data.load_failed": "Failed to load data",
        "data.empty_list": "No participants to draw from",
        "data.participants": "participants",
        "data.prizes": "prizes",
        "draw.prize": "Prize",
        "draw.start": "Draw",
        "draw.reset": "Reset prize",
        "draw.roll": "Roll names",
        "draw.remaining": "Remaining slots",
        "draw.eligible": "Eligible participants",
        "draw.winners": "Winners",
        "draw.no_candidates": "No candidates",
        "draw.unknown_prize": "Unknown prize",
        "draw.prize_exhausted": "All slots of this prize are drawn",
        "draw.no_eligible_candidates": "Nobody is left to draw",
        "export.csv": "Download CSV",
        "export.excel": "Save winners to Excel",
        "export.audit": "Audit record written",
        "export.write_audit": "Write audit record",
        "export.excel_saved": "Winners saved to Excel",
        "qr.title": "Check in",
        "qr.name_placeholder": "Your name",
        "qr.dept_placeholder": "Department (optional)",
        "qr.submit": "Check in",
        "qr.ready": "Check-in is open",
        "qr.url": "Check-in URL",
        "qr.close": "Close check-in",
        "qr.no_participants": "Nobody checked in",
        "qr.total_participants": "Checked in",
        "prize.level.0": "Grand Prize",
        "prize.level.1": "First Prize",
        "prize.level.2": "Second Prize",
        "prize.level.3": "Third Prize",
        "prize.level.4": "Fourth Prize",
        "prize.level.5": "Fifth Prize",
        "prize.level.unknown": "Unknown Prize",
    },
    CHINESE: {
        "app.title": "幸运日抽奖",
        "app.language": "语言",
        "data.source": "数据源",
        "data.source_excel": "Excel 文件",
        "data.source_csv": "CSV 文件",
        "data.source_db": "数据库",
        "data.source_qr": "扫码签到",
        "data.load": "加载数据",
        "data.load_success": "成功加载",
        "data.load_failed": "加载数据失败",
        "data.empty_list": "没有可抽奖的参与者",
        "data.participants": "名参与者",
        "data.prizes": "个奖项",
        "draw.prize": "奖项",
        "draw.start": "开始抽奖",
        "draw.reset": "重置奖项",
        "draw.roll": "滚动名单",
        "draw.remaining": "剩余名额",
        "draw.eligible": "可抽奖人数",
        "draw.winners": "中奖名单",
        "draw.no_candidates": "无候选人",
        "draw.unknown_prize": "奖项不存在",
        "draw.prize_exhausted": "该奖项名额已满",
        "draw.no_eligible_candidates": "没有可抽奖的人了",
        "export.csv": "下载 CSV",
        "export.excel": "保存中奖名单到 Excel",
        "export.audit": "已生成审计记录",
        "export.write_audit": "生成审计记录",
        "export.excel_saved": "中奖名单已保存到 Excel",
        "qr.title": "签到",
        "qr.name_placeholder": "请输入姓名",
        "qr.dept_placeholder": "部门（选填）",
        "qr.submit": "签到",
        "qr.ready": "签到已开启",
        "qr.url": "签到地址",
        "qr.close": "结束签到",
        "qr.no_participants": "没有人签到",
        "qr.total_participants": "签到人数",
        "prize.level.0": "特等奖",
        "prize.level.1": "一等奖",
        "prize.level.2": "二等奖",
        "prize.level.3": "三等奖",
        "prize.level.4": "四等奖",
        "prize.level.5": "五等奖",
        "prize.level.unknown": "未知奖项",
    },
}


class Translator:
    def __init__(self, language: str = CHINESE):
        self._language = CHINESE
        self.set_language(language)

    @property
    def language(self) -> str:
        return self._language

    def set_language(self, language: str) -> None:
        self._language = language if language in TRANSLATIONS else CHINESE

    def t(self, key: str) -> str:
        # current language, then English, then the key itself
        for table in (TRANSLATIONS[self._language], TRANSLATIONS[ENGLISH]):
            if key in table:
                return table[key]
        return key

    def prize_level(self, level: int) -> str:
        key = f"prize.level.{level}"
        return self.t(key) if key in TRANSLATIONS[ENGLISH] else self.t("prize.level.unknown")
