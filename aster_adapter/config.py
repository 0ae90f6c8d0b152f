"""
Configuration management for Aster Adapter

Loads settings from environment variables and .env file.
Includes logging configuration with file output and correlation ID support.
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv


def _load_env_file():
    """Load .env file from project root"""
    current = Path(__file__).parent.parent  # aster_adapter package parent
    env_file = current / ".env"

    if env_file.exists():
        load_dotenv(env_file)


# Load .env on module import
_load_env_file()


def _get_env(key: str, default: Optional[str] = "") -> Optional[str]:
    """Get environment variable with default"""
    value = os.getenv(key)
    if value is None:
        return default
    return value


def _get_env_float(key: str, default: float) -> float:
    """Get environment variable as float"""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"Invalid float value for {key}='{value}', using default={default}"
        )
        return default


def _get_env_int(key: str, default: int) -> int:
    """Get environment variable as int"""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"Invalid int value for {key}='{value}', using default={default}"
        )
        return default


def _get_env_bool(key: str, default: bool) -> bool:
    """Get environment variable as bool"""
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def _get_env_list(key: str, default: List[str]) -> List[str]:
    """Get comma separated environment variable as list"""
    value = os.getenv(key)
    if value is None:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class WalletConfig:
    """
    Per-network wallet settings

    Environment variables (NETWORK is ETHEREUM, ARBITRUM, BNB or SOLANA):
        {NETWORK}_RPC_URL
        {NETWORK}_WALLET_PRIVATE_KEY
        {NETWORK}_WALLET_MNEMONIC
    """
    rpc_url: str = ""
    private_key: Optional[str] = None
    mnemonic: Optional[str] = None

    @classmethod
    def from_env(cls, prefix: str) -> "WalletConfig":
        return cls(
            rpc_url=_get_env(f"{prefix}_RPC_URL", ""),
            private_key=_get_env(f"{prefix}_WALLET_PRIVATE_KEY", None) or None,
            mnemonic=_get_env(f"{prefix}_WALLET_MNEMONIC", None) or None,
        )


@dataclass
class ExchangeConfig:
    """AsterDEX spot API configuration"""
    base_url: str = field(default_factory=lambda: _get_env("ASTER_API_BASE_URL", "https://sapi.asterdex.com"))
    api_key: Optional[str] = field(default_factory=lambda: _get_env("ASTER_API_KEY", None) or None)
    api_secret: Optional[str] = field(default_factory=lambda: _get_env("ASTER_API_SECRET", None) or None)
    # Milliseconds the server accepts between timestamp and receipt
    recv_window: int = field(default_factory=lambda: _get_env_int("ASTER_RECV_WINDOW", 5000))
    timeout: float = field(default_factory=lambda: _get_env_float("ASTER_TIMEOUT", 30.0))

    @property
    def has_credentials(self) -> bool:
        return bool(self.api_key and self.api_secret)


@dataclass
class TxConfig:
    """Transaction configuration"""
    # Bound on waiting for a single confirmation (approve and deposit)
    confirmation_timeout: float = field(default_factory=lambda: _get_env_float("TX_CONFIRMATION_TIMEOUT", 300.0))
    approve_gas_limit: int = field(default_factory=lambda: _get_env_int("TX_APPROVE_GAS_LIMIT", 100_000))
    # Priority fee (tip) in gwei for Ethereum EIP-1559 transactions
    priority_fee_gwei: float = field(default_factory=lambda: _get_env_float("TX_PRIORITY_FEE_GWEI", 0.1))
    # Solana RPC settings; retries apply to idempotent reads only
    rpc_timeout_seconds: float = field(default_factory=lambda: _get_env_float("RPC_TIMEOUT_SECONDS", 30.0))
    rpc_max_retries: int = field(default_factory=lambda: _get_env_int("RPC_MAX_RETRIES", 3))
    rpc_retry_delay: float = field(default_factory=lambda: _get_env_float("RPC_RETRY_DELAY", 1.0))
    commitment: str = field(default_factory=lambda: _get_env("RPC_COMMITMENT", "confirmed"))
    skip_preflight: bool = field(default_factory=lambda: _get_env_bool("TX_SKIP_PREFLIGHT", False))


@dataclass
class WorkflowConfig:
    """Swap-and-bridge settle delays"""
    deposit_settle_seconds: float = field(default_factory=lambda: _get_env_float("BRIDGE_DEPOSIT_SETTLE_SECONDS", 5.0))
    swap_settle_seconds: float = field(default_factory=lambda: _get_env_float("BRIDGE_SWAP_SETTLE_SECONDS", 3.0))


@dataclass
class SolanaDepositConfig:
    """Solana treasury deposit settings"""
    # Seed suffixes tried in order when deriving the user deposit account
    pda_seeds: List[str] = field(default_factory=lambda: _get_env_list("SOLANA_DEPOSIT_PDA_SEEDS", ["deposit", "user"]))
    broker_id: int = field(default_factory=lambda: _get_env_int("ASTER_BROKER_ID", 56357235818057297))


@dataclass
class DebugConfig:
    """Verbose diagnostics (request params, signatures, typed data)"""
    full: bool = field(default_factory=lambda: _get_env_bool("DEBUG_FULL", False))


def _get_default_log_path() -> str:
    """Get default log file path under aster_adapter/log/ with UTC timestamp"""
    from datetime import datetime, timezone
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    log_dir = Path(__file__).parent / "log"
    return str(log_dir / f"aster_adapter_{timestamp}.log")


@dataclass
class LoggingConfig:
    """
    Logging configuration with file output and correlation ID support.

    Environment variables:
        LOG_FILE: Path to log file (empty disables file output)
        LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL (default: INFO)
        LOG_FORMAT: Custom log format string
        LOG_CONSOLE: Enable console output (default: true)
        LOG_MAX_BYTES: Max log file size before rotation (default: 10MB)
        LOG_BACKUP_COUNT: Number of backup files to keep (default: 5)
    """
    log_file: str = field(default_factory=lambda: _get_env("LOG_FILE", _get_default_log_path()))
    log_level: str = field(default_factory=lambda: _get_env("LOG_LEVEL", "INFO"))
    log_format: str = field(default_factory=lambda: _get_env(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    ))
    console_output: bool = field(default_factory=lambda: _get_env_bool("LOG_CONSOLE", True))
    max_bytes: int = field(default_factory=lambda: _get_env_int("LOG_MAX_BYTES", 10 * 1024 * 1024))  # 10MB
    backup_count: int = field(default_factory=lambda: _get_env_int("LOG_BACKUP_COUNT", 5))

    @property
    def level(self) -> int:
        """Get numeric log level"""
        return getattr(logging, self.log_level.upper(), logging.INFO)


def _default_wallets() -> Dict[str, WalletConfig]:
    return {
        name: WalletConfig.from_env(name.upper())
        for name in ("ethereum", "arbitrum", "bnb", "solana")
    }


@dataclass
class Config:
    """
    Main configuration container

    Loads all settings from environment variables and .env file.
    Components take a Config at construction and fall back to the
    global instance when none is given.

    Usage:
        from aster_adapter.config import config

        print(config.exchange.base_url)
        print(config.wallet_for("bnb").rpc_url)
    """
    wallets: Dict[str, WalletConfig] = field(default_factory=_default_wallets)
    exchange: ExchangeConfig = field(default_factory=ExchangeConfig)
    tx: TxConfig = field(default_factory=TxConfig)
    workflow: WorkflowConfig = field(default_factory=WorkflowConfig)
    solana_deposit: SolanaDepositConfig = field(default_factory=SolanaDepositConfig)
    debug: DebugConfig = field(default_factory=DebugConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def wallet_for(self, network) -> WalletConfig:
        """Get wallet settings for a network name or Network enum"""
        key = getattr(network, "value", network).lower()
        if key not in self.wallets:
            self.wallets[key] = WalletConfig()
        return self.wallets[key]

    @classmethod
    def reload(cls) -> "Config":
        """Reload configuration from environment"""
        _load_env_file()
        return cls()


# Global config instance
config = Config()


def get_config() -> Config:
    """Get global configuration instance"""
    return config


def reload_config() -> Config:
    """Reload and return new configuration"""
    global config
    config = Config.reload()
    return config


def setup_logging(
    log_config: Optional[LoggingConfig] = None,
    logger_name: str = "aster_adapter",
) -> logging.Logger:
    """
    Set up logging based on configuration.

    Creates handlers for file and/or console output with optional rotation.
    The log file directory is created automatically if it doesn't exist.

    Args:
        log_config: Logging configuration (uses global config if None)
        logger_name: Name of the logger to configure (default: aster_adapter)

    Returns:
        Configured logger instance
    """
    if log_config is None:
        log_config = config.logging

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_config.level)

    # Close before removing to flush buffers and release file handles
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    formatter = logging.Formatter(log_config.log_format)

    handlers: List[logging.Handler] = []

    if log_config.log_file:
        from logging.handlers import RotatingFileHandler

        log_path = Path(log_config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_config.log_file,
            maxBytes=log_config.max_bytes,
            backupCount=log_config.backup_count,
            encoding='utf-8',
        )
        file_handler.setLevel(log_config.level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if log_config.console_output:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_config.level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    for handler in handlers:
        logger.addHandler(handler)

    # Child loggers inherit handlers from parent
    for name in [
        f"{logger_name}.infra",
        f"{logger_name}.modules",
        f"{logger_name}.protocols",
    ]:
        logging.getLogger(name).setLevel(log_config.level)

    if log_config.log_file:
        logger.info(f"Logging initialized: file={log_config.log_file}, level={log_config.log_level}")

    return logger


def enable_file_logging(
    log_file: Optional[str] = None,
    level: str = "INFO",
    console: bool = True,
) -> logging.Logger:
    """
    Quick setup for file logging.

    Args:
        log_file: Path to log file (defaults to aster_adapter/log/)
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        console: Also output to console

    Returns:
        Configured logger
    """
    if log_file is None:
        log_file = config.logging.log_file

    log_config = LoggingConfig(
        log_file=log_file,
        log_level=level,
        console_output=console,
    )
    return setup_logging(log_config)
