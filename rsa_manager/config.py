"""
RSA Manager Configuration
=========================

Settings come from environment variables with sensible defaults:

``RSA_MANAGER_KEYS_DIR``   where key pairs are stored
                           (default ``<config dir>/RSA Manager/RSA-Keys``)
``RSA_MANAGER_KEY_SIZE``   default RSA modulus size (2048)
``RSA_MANAGER_ALGORITHM``  default AES-GCM variant (``AES-256-GCM``)
``RSA_MANAGER_LOG_LEVEL``  logging level name (``WARNING``)
"""

from __future__ import annotations

import os
import platform
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .engine import SymmetricAlgorithm
from .keygen import DEFAULT_KEY_SIZE, SUPPORTED_KEY_SIZES

APP_NAME = "RSA Manager"
KEYS_DIR_NAME = "RSA-Keys"

ENV_KEYS_DIR = "RSA_MANAGER_KEYS_DIR"
ENV_KEY_SIZE = "RSA_MANAGER_KEY_SIZE"
ENV_ALGORITHM = "RSA_MANAGER_ALGORITHM"
ENV_LOG_LEVEL = "RSA_MANAGER_LOG_LEVEL"


# ---------------------------------------------------------------------------
# Config directory
# ---------------------------------------------------------------------------

def config_dir() -> Path:
    """Return the OS-appropriate config directory for RSA Manager.

    The directory is not created here; the key store creates it on first save.
    """
    if platform.system() == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
    elif platform.system() == "Darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return base / APP_NAME


def default_keys_dir() -> Path:
    return config_dir() / KEYS_DIR_NAME


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Settings:
    keys_dir: Path
    key_size: int = DEFAULT_KEY_SIZE
    algorithm: SymmetricAlgorithm = SymmetricAlgorithm.AES_256_GCM
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from *environ* (defaults to ``os.environ``).

        Raises ``ValueError`` for an unsupported key size or algorithm name.
        """
        env = os.environ if environ is None else environ

        keys_dir = Path(env[ENV_KEYS_DIR]).expanduser() if env.get(ENV_KEYS_DIR) else default_keys_dir()

        raw_size = env.get(ENV_KEY_SIZE, str(DEFAULT_KEY_SIZE))
        try:
            key_size = int(raw_size)
        except ValueError as exc:
            raise ValueError(f"{ENV_KEY_SIZE} must be an integer, got {raw_size!r}.") from exc
        if key_size not in SUPPORTED_KEY_SIZES:
            raise ValueError(f"{ENV_KEY_SIZE} must be one of {SUPPORTED_KEY_SIZES}, got {key_size}.")

        algorithm = SymmetricAlgorithm(env.get(ENV_ALGORITHM, SymmetricAlgorithm.AES_256_GCM.value))
        log_level = env.get(ENV_LOG_LEVEL, "WARNING").upper()

        return cls(keys_dir=keys_dir, key_size=key_size, algorithm=algorithm, log_level=log_level)
