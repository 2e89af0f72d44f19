from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

METADATA_SHEET = "Export"


def _write_table(workbook, table_name, headers, rows):
    worksheet = workbook.create_sheet(title=table_name)
    worksheet.append(headers)
    for cell in worksheet[1]:
        cell.font = Font(bold=True)
    worksheet.freeze_panes = "A2"

    for row in rows:
        worksheet.append([row.get(header, "") for header in headers])

    if rows:
        last_column = get_column_letter(len(headers))
        worksheet.auto_filter.ref = f"A1:{last_column}{len(rows) + 1}"
    return worksheet


def write_excel(out_path, schemas, data_by_table, table_order, metadata=None):
    """One sheet per table, empty tables keep their header row.

    ``metadata`` (export time, source, exporter version) goes to a trailing
    key/value sheet so the workbook can be traced back to its run.
    """
    workbook = Workbook()
    workbook.remove(workbook.active)

    for table_name in table_order:
        _write_table(workbook, table_name, schemas[table_name], data_by_table.get(table_name, []))

    if metadata:
        worksheet = workbook.create_sheet(title=METADATA_SHEET)
        for key, value in metadata.items():
            worksheet.append([key, "" if value is None else str(value)])

    workbook.save(out_path)
    return out_path
