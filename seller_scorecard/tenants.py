"""Tenant (store) resolution"""

import re
import unicodedata
from dataclasses import dataclass
from typing import List, Optional

from .config import ScorecardConfig

STORAGE_PREFIX = "perf_sellers_"
DEFAULT_TENANT_KEY = "default"


@dataclass(frozen=True)
class Tenant:
    """A store with its own display label and persisted records"""
    key: str
    label: str

    @property
    def storage_key(self) -> str:
        return f"{STORAGE_PREFIX}{self.key or DEFAULT_TENANT_KEY}"

    @property
    def export_filename(self) -> str:
        return f"performance_{self.key or DEFAULT_TENANT_KEY}.json"


def slugify(text: Optional[str]) -> str:
    """Lowercase ASCII slug: "Toyota Nações" -> "toyota-nacoes" """
    normalized = unicodedata.normalize("NFD", str(text or ""))
    stripped = "".join(c for c in normalized if not unicodedata.combining(c))
    slug = re.sub(r"[^a-z0-9]+", "-", stripped.lower())
    return slug.strip("-")


def resolve_tenant(raw_key: Optional[str], config: ScorecardConfig) -> Tenant:
    """Map a free-form store key to a tenant; unknown keys get the default label"""
    key = slugify(raw_key)
    label = config.tenants.get(key, config.default_tenant_label)
    return Tenant(key=key, label=label)


def list_tenants(config: ScorecardConfig) -> List[Tenant]:
    return [Tenant(key=key, label=label) for key, label in config.tenants.items()]
