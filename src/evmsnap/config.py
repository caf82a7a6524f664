"""
Run configuration for an extraction.

Values come from command-line flags, falling back to environment variables
and then to built-in defaults.
"""

import os
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from .rpc.client import DEFAULT_RPC_URL, normalize_tx_hash

ENV_RPC_URL = "EVMSNAP_RPC_URL"
ENV_TIMEOUT = "EVMSNAP_TIMEOUT"
ENV_PREFETCH_WORKERS = "EVMSNAP_PREFETCH_WORKERS"

DEFAULT_TIMEOUT = 30
DEFAULT_PREFETCH_WORKERS = 1


@dataclass
class ExtractorConfig:
    rpc_url: str
    tx_hash: str
    output: Optional[str] = None
    timeout: int = DEFAULT_TIMEOUT
    prefetch_workers: int = DEFAULT_PREFETCH_WORKERS
    indent: Optional[int] = 2

    def __post_init__(self):
        url = (self.rpc_url or "").strip()
        if not url:
            raise ValueError("rpc_url must be a non-empty string.")
        self.rpc_url = url
        self.tx_hash = normalize_tx_hash(self.tx_hash)
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.prefetch_workers < 1:
            raise ValueError(f"prefetch_workers must be at least 1, got {self.prefetch_workers}")
        if self.indent is not None and self.indent < 0:
            self.indent = None


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def load_config(args: Any, env: Optional[Mapping[str, str]] = None) -> ExtractorConfig:
    """Build an ExtractorConfig from parsed CLI arguments and the environment."""
    if env is None:
        env = os.environ

    rpc_url = getattr(args, 'rpc_url', None) or env.get(ENV_RPC_URL) or DEFAULT_RPC_URL
    timeout = getattr(args, 'timeout', None)
    if timeout is None:
        timeout = _env_int(env, ENV_TIMEOUT, DEFAULT_TIMEOUT)
    workers = getattr(args, 'prefetch_workers', None)
    if workers is None:
        workers = _env_int(env, ENV_PREFETCH_WORKERS, DEFAULT_PREFETCH_WORKERS)

    return ExtractorConfig(
        rpc_url=rpc_url,
        tx_hash=args.tx_hash,
        output=getattr(args, 'output', None),
        timeout=timeout,
        prefetch_workers=workers,
        indent=getattr(args, 'indent', 2),
    )
