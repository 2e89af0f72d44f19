import csv
import re
from pathlib import Path


def table_path(out_path, table_name: str, table_order) -> Path:
    out_path = Path(out_path)
    if table_name == table_order[0]:
        return out_path
    suffix = re.sub(r"(?<!^)(?=[A-Z])", "_", table_name).lower()
    return out_path.with_name(f"{out_path.stem}_{suffix}{out_path.suffix}")


def write_csv(out_path, schemas, data_by_table, table_order):
    """First table goes to out_path; the rest only when they have rows."""
    written = []
    for table_name in table_order:
        rows = data_by_table.get(table_name, [])
        if table_name != table_order[0] and not rows:
            continue
        headers = schemas[table_name]
        csv_path = table_path(out_path, table_name, table_order)
        with csv_path.open("w", newline="", encoding="utf-8") as handle:
            writer = csv.writer(handle)
            writer.writerow(headers)
            for row in rows:
                writer.writerow([row.get(header, "") for header in headers])
        written.append(csv_path)
    return written
