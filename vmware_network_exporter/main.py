import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence
from urllib.parse import urlparse

from .collectors import COLLECTORS, CollectorContext
from .config import Config, load_config, parse_args, validate_config
from .diagnostics import Diagnostics
from .errors import ConfigError, ExporterError
from .models import ExportSource, TopologyExport
from .version import EXPORTER_VERSION
from .vmware_client import open_session
from .writer.csv_writer import write_csv
from .writer.excel_writer import write_excel
from .writer.json_writer import write_json
from .writer.tabular import SCHEMAS, TABLE_ORDER, project

LOGGER_NAME = "vmware_network_exporter"


def setup_logging(debug: bool) -> logging.Logger:
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    return logger


def add_log_file(logger: logging.Logger, log_file: str) -> logging.FileHandler:
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    return handler


def _mask_user(user: str) -> str:
    if not user:
        return ""
    if "@" in user:
        name, domain = user.split("@", 1)
        if not name:
            return f"***@{domain}"
        visible = name[:2] if len(name) > 1 else name[:1]
        return f"{visible}***@{domain}"
    visible = user[:2] if len(user) > 1 else user[:1]
    return f"{visible}***"


def _extract_server_host(server: str) -> str:
    if not server:
        return ""
    if "://" not in server:
        server = f"https://{server}"
    parsed = urlparse(server)
    return parsed.hostname or server


def write_document(config: Config, document: TopologyExport) -> None:
    out_path = Path(config.out_path)
    if config.out_format == "json":
        write_json(out_path, document)
        return
    tables = project(document)
    if config.out_format == "xlsx":
        metadata = {
            "exportedAt": document.exported_at,
            "exporterVersion": document.exporter_version,
            "server": document.source.server,
            "apiVersion": document.source.api_version,
        }
        write_excel(out_path, SCHEMAS, tables, TABLE_ORDER, metadata=metadata)
    else:
        write_csv(out_path, SCHEMAS, tables, TABLE_ORDER)


def _write_diagnostics(out_path: Path, diagnostics: Diagnostics, logger: logging.Logger) -> None:
    diagnostics_path = out_path.parent / "diagnostics.json"
    try:
        with diagnostics_path.open("w", encoding="utf-8") as handle:
            json.dump(diagnostics.to_dict(), handle, indent=2, sort_keys=True)
    except OSError as exc:
        logger.debug("No se pudo escribir diagnostics.json: %s", exc)


def _print_summary(document: TopologyExport, diagnostics: Diagnostics, logger: logging.Logger) -> None:
    for section in diagnostics.sections():
        stats = diagnostics.get_section_stats(section)
        logger.info(
            "Resumen %s: attempted=%s success=%s warnings=%s no_permission=%s invalid_property=%s not_found=%s other_error=%s",
            section,
            stats.attempted_count,
            stats.success_count,
            stats.warning_count,
            stats.no_permission_count,
            stats.invalid_property_count,
            stats.not_found_count,
            stats.other_error_count,
        )
    counts = document.count_by_kind()
    logger.info(
        "Resumen export: distributed=%s standard=%s hosts=%s resource_pools=%s",
        counts["Distributed"],
        counts["Standard"],
        counts["HostNetwork"],
        counts["ResourcePool"],
    )


class CollectorFailure(Exception):
    """One or more collectors crashed; the others' records are still exported."""

    def __init__(self, modules: List[str], records_by_module: Dict[str, List[object]]) -> None:
        super().__init__(f"Fallaron los collectors: {', '.join(modules)}")
        self.modules = modules
        self.records_by_module = records_by_module


def run_collectors(
    context: CollectorContext, records_by_module: Optional[Dict[str, List[object]]] = None
) -> Dict[str, List[object]]:
    """Run the enabled collectors in order, filling ``records_by_module``.

    Fatal errors propagate; records from collectors that already ran stay in
    ``records_by_module``.
    """
    config = context.config
    logger = context.logger
    if records_by_module is None:
        records_by_module = {}
    failed = []

    for module, collector in COLLECTORS.items():
        if not config.is_enabled(module):
            logger.info("Modulo %s omitido", module)
            continue
        try:
            result = collector(context)
        except ExporterError:
            raise
        except Exception as exc:
            logger.exception("Error en collector %s: %s", module, exc)
            failed.append(module)
            records_by_module[module] = []
            continue

        for warning in result.warnings:
            logger.debug("Aviso %s: %s", module, warning)
        records_by_module[module] = result.records

    if failed:
        raise CollectorFailure(failed, records_by_module)
    return records_by_module


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logger = setup_logging(args.debug)

    try:
        config = load_config(args)
    except ConfigError as exc:
        logger.error(str(exc))
        return 2

    log_handler = add_log_file(logger, config.log_file) if config.log_file else None
    try:
        return _run(config, logger)
    finally:
        if log_handler is not None:
            logger.removeHandler(log_handler)
            log_handler.close()


def _run(config: Config, logger: logging.Logger) -> int:
    if not validate_config(config, logger):
        return 2

    out_path = Path(config.out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    if config.env_file_used:
        logger.info(
            "Cargadas credenciales desde: %s (user: %s)",
            config.env_file_used,
            _mask_user(config.user),
        )

    diagnostics = Diagnostics()
    diagnostics.set_runtime_config(
        {
            "env_file_used": config.env_file_used,
            "server_host": _extract_server_host(config.server),
            "insecure": config.insecure,
            "format": config.out_format,
            "cluster": config.cluster,
            "log_file": config.log_file,
        }
    )
    document = TopologyExport(
        exported_at=datetime.now(timezone.utc).isoformat(),
        exporter_version=EXPORTER_VERSION,
        source=ExportSource(server=_extract_server_host(config.server)),
    )
    collected = document
    exit_code = 1
    session_opened = False

    try:
        logger.info("Conectando a %s", config.server)
        with open_session(config, logger=logger) as session:
            session_opened = True
            about = session.about
            document = document.model_copy(
                update={
                    "source": ExportSource(
                        server=_extract_server_host(config.server),
                        api_type=getattr(about, "apiType", "") or "",
                        api_version=getattr(about, "apiVersion", "") or "",
                    )
                }
            )
            context = CollectorContext(
                session=session,
                config=config,
                logger=logger,
                diagnostics=diagnostics,
            )
            records_by_module: Dict[str, List[object]] = {}
            try:
                records_by_module = run_collectors(context, records_by_module)
                exit_code = 0
            except CollectorFailure as exc:
                logger.error(str(exc))
            finally:
                records = [record for records in records_by_module.values() for record in records]
                collected = document.model_copy(update={"records": records})

        write_document(config, collected)
        logger.info("Export completado: %s (%s)", out_path, config.out_format)
    except Exception as exc:
        logger.exception("Fallo la exportacion: %s", exc)
        exit_code = 1
        if session_opened:
            # Empty but valid document; the summary still counts what was collected
            try:
                write_document(config, document.model_copy(update={"records": []}))
            except Exception as write_exc:
                logger.error("No se pudo escribir el documento vacio: %s", write_exc)
    finally:
        _write_diagnostics(out_path, diagnostics, logger)
        _print_summary(collected, diagnostics, logger)

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
