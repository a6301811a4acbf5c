from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional
import os

# Feature flag names (read from app.config)
FLAG_ATOMIC_BALANCE = 'LEDGER_ATOMIC_BALANCE'


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


def load_settings() -> Dict[str, Any]:
    """Default config values, environment first (``.env`` is loaded by the app factory)."""
    return {
        'JWT_SECRET_KEY': os.getenv('JWT_SECRET_KEY', 'dev-secret'),
        'DATABASE_URL': os.getenv('DATABASE_URL', 'sqlite:///dev.db'),
        'DEFAULT_COMPANY_ID': os.getenv('DEFAULT_COMPANY_ID', 'default-company'),
        FLAG_ATOMIC_BALANCE: _env_flag(FLAG_ATOMIC_BALANCE, True),
        'LEDGER_ADMIN_ROLE': os.getenv('LEDGER_ADMIN_ROLE', 'admin'),
        'LOG_LEVEL': os.getenv('LOG_LEVEL', 'INFO').upper(),
    }


@dataclass(frozen=True)
class CompanyContext:
    """Tenant scope every ledger operation runs under."""
    company_id: str

    @classmethod
    def resolve(cls, app_config: Mapping[str, Any], claims: Optional[Mapping[str, Any]] = None) -> 'CompanyContext':
        company_id = (claims or {}).get('company_id') or app_config.get('DEFAULT_COMPANY_ID')
        return cls(company_id=str(company_id))


__all__ = ['load_settings', 'CompanyContext', 'FLAG_ATOMIC_BALANCE']
