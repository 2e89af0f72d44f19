from pathlib import Path

from ..models import TopologyExport


def write_json(out_path, document: TopologyExport) -> None:
    payload = document.model_dump_json(by_alias=True, indent=2)
    Path(out_path).write_text(payload + "\n", encoding="utf-8")


def load_json(path) -> TopologyExport:
    return TopologyExport.model_validate_json(Path(path).read_text(encoding="utf-8"))
