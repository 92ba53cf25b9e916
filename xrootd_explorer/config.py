import configparser
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from .sandbox import normalize_base

PROTOCOLS = ("xrootd", "sftp")
TRUE_VALUES = ("true", "1", "yes")


@dataclass
class XRootDConfig:
    server: str
    xrdfs_binary: str = "xrdfs"
    xrdcp_binary: str = "xrdcp"


@dataclass
class SSHConfig:
    host: str
    port: int = 22
    username: str | None = None
    password: str | None = None
    key_file: str | None = None  # Path to SSH private key
    key_passphrase: str | None = None  # Passphrase for encrypted keys
    use_agent: bool = True  # Try SSH agent for auth


@dataclass
class CacheConfig:
    enabled: bool = True
    ttl_minutes: int = 60
    max_entries: int = 1000

    @property
    def ttl_seconds(self) -> int:
        return self.ttl_minutes * 60


@dataclass
class ConnectionConfig:
    timeout_seconds: int = 300
    retry_attempts: int = 3
    retry_delay_seconds: int = 1


@dataclass
class LogConfig:
    level: str = "INFO"
    file: str = ""
    console: bool = True


@dataclass
class AppConfig:
    xrootd: XRootDConfig
    cache: CacheConfig = field(default_factory=CacheConfig)
    connection: ConnectionConfig = field(default_factory=ConnectionConfig)
    logging: LogConfig = field(default_factory=LogConfig)
    base_directory: str = "/"
    protocol: str = "xrootd"  # "xrootd" or "sftp"
    ssh: SSHConfig | None = None


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in TRUE_VALUES


def _parse_int(key: str, value: str, source: str = "config") -> int:
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Invalid {key} value in {source}: '{value}' - must be an integer")


def load_config(
    config_path: str | None = None, environ: Mapping[str, str] | None = None, **cli_args
) -> AppConfig:
    """
    Load configuration from an INI file, the environment and CLI arguments.

    Later sources win: CLI arguments override environment variables, which
    override the config file.

    Args:
        config_path: Path to the INI configuration file.
        environ: Environment mapping (defaults to os.environ).
        **cli_args: Key-value pairs from command line arguments.

    Returns:
        AppConfig: The populated configuration object.

    Raises:
        FileNotFoundError: If config_path is provided but does not exist.
        ValueError: If required fields are missing or malformed.
    """
    if environ is None:
        environ = os.environ

    # Initialize with defaults
    general_config = {
        "protocol": "xrootd",
        "base_directory": "/",
    }
    xrootd_config = {
        "server": None,
        "xrdfs_binary": "xrdfs",
        "xrdcp_binary": "xrdcp",
    }
    ssh_config = {
        "host": None,
        "port": 22,
        "username": None,
        "password": None,
        "key_file": None,
        "key_passphrase": None,
        "use_agent": True,
    }
    cache_config = {
        "enabled": True,
        "ttl_minutes": 60,
        "max_entries": 1000,
    }
    connection_config = {
        "timeout_seconds": 300,
        "retry_attempts": 3,
        "retry_delay_seconds": 1,
    }
    log_config = {
        "level": "INFO",
        "file": "",
        "console": True,
    }

    # Parse INI file if provided
    if config_path is not None:
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        parser = configparser.ConfigParser()
        parser.read(config_file, encoding="utf-8")

        # Load [general] section
        if parser.has_section("general"):
            general_section = parser["general"]
            if general_section.get("protocol"):
                general_config["protocol"] = general_section.get("protocol").lower()
            if general_section.get("base_directory"):
                general_config["base_directory"] = general_section.get("base_directory")

        # Load [xrootd] section
        if parser.has_section("xrootd"):
            xrootd_section = parser["xrootd"]
            for key in ("server", "xrdfs_binary", "xrdcp_binary"):
                if xrootd_section.get(key):
                    xrootd_config[key] = xrootd_section.get(key)

        # Load [ssh] section
        if parser.has_section("ssh"):
            ssh_section = parser["ssh"]
            for key in ("host", "username", "password", "key_file", "key_passphrase"):
                if ssh_section.get(key):
                    ssh_config[key] = ssh_section.get(key)
            if ssh_section.get("port"):
                ssh_config["port"] = _parse_int("SSH port", ssh_section.get("port"))
            if ssh_section.get("use_agent"):
                ssh_config["use_agent"] = _parse_bool(ssh_section.get("use_agent"))

        # Load [cache] section
        if parser.has_section("cache"):
            cache_section = parser["cache"]
            if cache_section.get("enabled"):
                cache_config["enabled"] = _parse_bool(cache_section.get("enabled"))
            for key in ("ttl_minutes", "max_entries"):
                if cache_section.get(key):
                    cache_config[key] = _parse_int(key, cache_section.get(key))

        # Load [connection] section
        if parser.has_section("connection"):
            conn_section = parser["connection"]
            for key in ("timeout_seconds", "retry_attempts", "retry_delay_seconds"):
                if conn_section.get(key):
                    connection_config[key] = _parse_int(key, conn_section.get(key))

        # Load [logging] section
        if parser.has_section("logging"):
            log_section = parser["logging"]
            if log_section.get("level"):
                log_config["level"] = log_section.get("level")
            if log_section.get("file"):
                log_config["file"] = log_section.get("file")
            if log_section.get("console"):
                log_config["console"] = _parse_bool(log_section.get("console"))

    # Environment variables used by existing deployments
    if environ.get("XROOTD_SERVER"):
        xrootd_config["server"] = environ["XROOTD_SERVER"]
    if environ.get("XROOTD_BASE_DIR"):
        general_config["base_directory"] = environ["XROOTD_BASE_DIR"]
    if environ.get("XROOTD_CACHE_ENABLED"):
        # Only an explicit "false" disables the cache
        cache_config["enabled"] = environ["XROOTD_CACHE_ENABLED"].strip().lower() != "false"
    if environ.get("XROOTD_CACHE_TTL"):
        cache_config["ttl_minutes"] = _parse_int(
            "XROOTD_CACHE_TTL", environ["XROOTD_CACHE_TTL"], "environment"
        )
    if environ.get("XROOTD_CACHE_MAX_SIZE"):
        cache_config["max_entries"] = _parse_int(
            "XROOTD_CACHE_MAX_SIZE", environ["XROOTD_CACHE_MAX_SIZE"], "environment"
        )

    # Override with CLI arguments (cli_args take precedence)
    if cli_args.get("protocol") is not None:
        general_config["protocol"] = cli_args["protocol"].lower()
    if cli_args.get("base_directory") is not None:
        general_config["base_directory"] = cli_args["base_directory"]
    if cli_args.get("server") is not None:
        xrootd_config["server"] = cli_args["server"]
    if cli_args.get("host") is not None:
        ssh_config["host"] = cli_args["host"]
    if cli_args.get("port") is not None:
        ssh_config["port"] = int(cli_args["port"])
    if cli_args.get("username") is not None:
        ssh_config["username"] = cli_args["username"] or None
    if cli_args.get("key_file") is not None:
        ssh_config["key_file"] = cli_args["key_file"]
    if cli_args.get("no_cache"):
        cache_config["enabled"] = False
    if cli_args.get("debug"):
        log_config["level"] = "DEBUG"
        log_config["console"] = True

    protocol = general_config["protocol"]
    if protocol not in PROTOCOLS:
        raise ValueError(f"Unknown protocol: {protocol}. Must be one of: {', '.join(PROTOCOLS)}")

    # Validate required fields
    if protocol == "sftp":
        if not ssh_config["host"]:
            raise ValueError("Missing required configuration fields: host")
    elif not xrootd_config["server"]:
        raise ValueError("Missing required configuration fields: server")

    base_directory = general_config["base_directory"]
    if not base_directory.startswith("/"):
        raise ValueError(f"Invalid base directory: {base_directory}. Must be an absolute path.")

    if cache_config["ttl_minutes"] < 0:
        raise ValueError("Invalid ttl_minutes: must not be negative")
    if cache_config["max_entries"] < 1:
        raise ValueError("Invalid max_entries: must be at least 1")

    # Build SSH config object if needed
    ssh_obj = None
    if protocol == "sftp":
        ssh_obj = SSHConfig(
            host=ssh_config["host"],
            port=ssh_config["port"],
            username=ssh_config["username"],
            password=ssh_config["password"],
            key_file=ssh_config["key_file"],
            key_passphrase=ssh_config["key_passphrase"],
            use_agent=ssh_config["use_agent"],
        )

    # Build and return AppConfig
    return AppConfig(
        xrootd=XRootDConfig(
            server=(xrootd_config["server"] or "").rstrip("/"),
            xrdfs_binary=xrootd_config["xrdfs_binary"],
            xrdcp_binary=xrootd_config["xrdcp_binary"],
        ),
        cache=CacheConfig(
            enabled=cache_config["enabled"],
            ttl_minutes=cache_config["ttl_minutes"],
            max_entries=cache_config["max_entries"],
        ),
        connection=ConnectionConfig(
            timeout_seconds=connection_config["timeout_seconds"],
            retry_attempts=connection_config["retry_attempts"],
            retry_delay_seconds=connection_config["retry_delay_seconds"],
        ),
        logging=LogConfig(
            level=log_config["level"],
            file=log_config["file"],
            console=log_config["console"],
        ),
        base_directory=normalize_base(base_directory),
        protocol=protocol,
        ssh=ssh_obj,
    )
