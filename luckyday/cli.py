import argparse

from luckyday.core.logging import configure_logging
from luckyday.datasource.export import create_excel_template


def create_template(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Create an Excel workbook with sample prizes and participants.")
    parser.add_argument("path", nargs="?", default="lottery_template.xlsx")
    args = parser.parse_args(argv)
    configure_logging()
    create_excel_template(args.path)
    print(f"Excel template created: {args.path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(create_template())
