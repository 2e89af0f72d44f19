import argparse
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from dotenv import dotenv_values

from .errors import ConfigError


URL_ALIASES = ["VCENTER_URL", "VCENTER_HOST", "VSPHERE_URL", "VMW_URL", "VCSA_URL"]
USER_ALIASES = [
    "VCENTER_USER",
    "VSPHERE_USER",
    "VMW_USER",
    "VCSA_USER",
    "USERNAME",
]
PASSWORD_ALIASES = [
    "VCENTER_PASSWORD",
    "VCENTER_PASS",
    "VSPHERE_PASSWORD",
    "VMW_PASSWORD",
    "VCSA_PASSWORD",
    "PASSWORD",
]
INSECURE_ALIASES = ["VCENTER_INSECURE", "VSPHERE_INSECURE", "VMW_INSECURE"]

FORMATS = ["json", "csv", "xlsx"]
FORMAT_ALIASES = {"structured": "json", "tabular": "csv"}


@dataclass
class Config:
    server: str
    user: str
    password: str
    insecure: bool
    out_path: str
    out_format: str
    cluster: Optional[str]
    include_standard_switches: bool
    skip_switches: bool
    skip_hosts: bool
    skip_resource_pools: bool
    log_file: Optional[str]
    debug: bool
    env_file_used: Optional[str]

    def is_enabled(self, module: str) -> bool:
        if module == "switches":
            return not self.skip_switches
        if module == "hosts":
            return not self.skip_hosts
        if module == "resource_pools":
            return not self.skip_resource_pools and bool(self.cluster)
        raise ValueError(f"Modulo desconocido: {module}")


def _env_bool(value: Optional[str]) -> bool:
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="VMware Network Topology Exporter")
    parser.add_argument("--server", help="vCenter URL (https://host)")
    parser.add_argument("--user", help="Usuario")
    parser.add_argument("--password", help="Password")
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Deshabilita verificacion TLS (solo si es necesario)",
    )
    parser.add_argument("--out", dest="out_path", help="Ruta del documento de salida")
    parser.add_argument(
        "--format",
        dest="out_format",
        choices=FORMATS + sorted(FORMAT_ALIASES),
        help="json (estructurado) o csv/xlsx (tabular). Por defecto segun la extension de --out",
    )
    parser.add_argument("--cluster", help="Cluster cuyos resource pools se exportan")
    parser.add_argument(
        "--include-standard-switches",
        action="store_true",
        help="Incluye vSwitches estandar por host en la topologia",
    )
    parser.add_argument("--skip-switches", action="store_true", help="Omite la topologia de switches")
    parser.add_argument("--skip-hosts", action="store_true", help="Omite los perfiles de red por host")
    parser.add_argument("--skip-resource-pools", action="store_true", help="Omite los resource pools")
    parser.add_argument("--log-file", dest="log_file", help="Archivo de log adicional")
    parser.add_argument("--debug", action="store_true", help="Logs en modo debug")
    parser.add_argument(
        "--env-file",
        dest="env_file",
        help="Ruta a archivo .env (si no se especifica, se autodetecta)",
    )
    return parser.parse_args(argv)


def _env_candidates(base_dir: Path) -> List[Path]:
    return [
        Path.cwd() / ".env",
        base_dir / ".env",
        base_dir / ".." / ".env",
    ]


def _resolve_env_file(
    env_file: Optional[str], base_dir: Path, needs_env: bool
) -> Tuple[Optional[Path], List[Path]]:
    attempted = []

    if env_file:
        candidate = Path(env_file)
        attempted.append(candidate)
        if not candidate.is_file():
            raise ConfigError(f"No se encontro .env en: {candidate}")
        return candidate, attempted

    if not needs_env:
        return None, attempted

    for candidate in _env_candidates(base_dir):
        attempted.append(candidate)
        if candidate.is_file():
            return candidate, attempted

    return None, attempted


def _read_env_values(env_file: Optional[Path]) -> Dict[str, str]:
    if env_file is None:
        return {}
    values = dotenv_values(env_file)
    normalized = {}
    for key, value in values.items():
        if value is None:
            continue
        normalized[key] = str(value).strip()
    return normalized


def _resolve_alias_value(aliases: List[str], env_values: Dict[str, str]) -> Optional[str]:
    resolved = None
    for key in aliases:
        value = env_values.get(key)
        if value:
            resolved = value
            break

    for key in aliases:
        value = os.environ.get(key)
        if value:
            return value.strip()

    return resolved


def _resolve_plain_value(key: str, env_values: Dict[str, str]) -> Optional[str]:
    resolved = env_values.get(key)
    env_override = os.environ.get(key)
    if env_override:
        return env_override.strip()
    return resolved


def _resolve_format(out_format: Optional[str], out_path: str) -> str:
    if out_format:
        out_format = out_format.strip().lower()
        out_format = FORMAT_ALIASES.get(out_format, out_format)
        if out_format not in FORMATS:
            raise ConfigError(f"Formato no soportado: {out_format}")
        return out_format
    suffix = Path(out_path).suffix.lower().lstrip(".") if out_path else ""
    return suffix if suffix in FORMATS else "json"


def load_config(args: argparse.Namespace) -> Config:
    base_dir = Path(__file__).resolve().parent.parent

    server_cli = (args.server or "").strip()
    user_cli = (args.user or "").strip()
    password_cli = (args.password or "").strip()

    needs_env = not (server_cli and user_cli and password_cli)
    env_file, _attempted = _resolve_env_file(args.env_file, base_dir, needs_env)
    env_values = _read_env_values(env_file)

    server_env = _resolve_alias_value(URL_ALIASES, env_values)
    user_env = _resolve_alias_value(USER_ALIASES, env_values)
    password_env = _resolve_alias_value(PASSWORD_ALIASES, env_values)
    insecure_env = _resolve_alias_value(INSECURE_ALIASES, env_values)

    server = server_cli or (server_env or "")
    user = user_cli or (user_env or "")
    password = password_cli or (password_env or "")

    if args.insecure:
        insecure = True
    else:
        insecure = _env_bool(insecure_env)

    out_path = args.out_path or _resolve_plain_value("OUT_PATH", env_values) or ""
    out_format = _resolve_format(
        args.out_format or _resolve_plain_value("OUT_FORMAT", env_values), out_path
    )

    return Config(
        server=server,
        user=user,
        password=password,
        insecure=insecure,
        out_path=out_path,
        out_format=out_format,
        cluster=args.cluster or _resolve_plain_value("CLUSTER", env_values),
        include_standard_switches=args.include_standard_switches,
        skip_switches=args.skip_switches,
        skip_hosts=args.skip_hosts,
        skip_resource_pools=args.skip_resource_pools,
        log_file=args.log_file or _resolve_plain_value("LOG_FILE", env_values),
        debug=args.debug,
        env_file_used=str(env_file) if env_file else None,
    )


def validate_config(config: Config, logger: logging.Logger) -> bool:
    missing = []
    if not config.server:
        missing.append("--server o VCENTER_URL")
    if not config.user:
        missing.append("--user o VCENTER_USER")
    if not config.password:
        missing.append("--password o VCENTER_PASSWORD")
    if not config.out_path:
        missing.append("--out o OUT_PATH")

    if missing:
        logger.error("Faltan parametros requeridos: %s", ", ".join(missing))
        return False

    return True
