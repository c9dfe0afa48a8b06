"""
Per-architecture and per-domain configuration defaults.

Values are plain dictionaries keyed by ``SeedConfiguration`` field names so
they can be layered with shallow merges. Callers copy before merging.
"""

from __future__ import annotations

import copy
from typing import Any

ARCHITECTURE_DEFAULTS: dict[str, dict[str, Any]] = {
    "individual": {
        "user_count": 5,
        "setups_per_user": 2,
        "create_team_accounts": False,
        "multi_tenant": {
            "enabled": False,
            "tenant_column": "user_id",
            "strict_isolation": False,
            "allow_shared_resources": True,
            "generate_personal_accounts": True,
            "generate_team_accounts": False,
            "personal_account_ratio": 1.0,
        },
    },
    "team": {
        "user_count": 8,
        "setups_per_user": 1,
        "create_team_accounts": True,
        "multi_tenant": {
            "enabled": True,
            "tenant_column": "account_id",
            "strict_isolation": True,
            "allow_shared_resources": False,
            "generate_personal_accounts": False,
            "generate_team_accounts": True,
            "personal_account_ratio": 0.2,
        },
    },
    "hybrid": {
        "user_count": 10,
        "setups_per_user": 2,
        "create_team_accounts": True,
        "multi_tenant": {
            "enabled": True,
            "tenant_column": "account_id",
            "strict_isolation": False,
            "allow_shared_resources": True,
            "generate_personal_accounts": True,
            "generate_team_accounts": True,
            "personal_account_ratio": 0.6,
            "shared_tables": ["categories"],
        },
    },
}

ARCHITECTURE_REASONING = {
    "individual": "Configured for individual creator platform with personal content focus",
    "team": "Configured for team collaboration platform with multi-tenant isolation",
    "hybrid": "Configured for hybrid platform supporting both individual and team usage",
}

DOMAIN_DEFAULTS: dict[str, dict[str, Any]] = {
    "outdoor": {
        "enable_real_images": True,
        "images_per_setup": 3,
        "email_domain": "outdoor.test",
        "storage": {
            "buckets": {
                "setup_images": "setup-images",
                "gear_images": "gear-images",
                "profile_images": "profile-images",
            }
        },
    },
    "saas": {
        "enable_real_images": False,
        "images_per_setup": 1,
        "create_team_accounts": True,
        "email_domain": "saas.test",
        "storage": {"buckets": {"attachments": "attachments", "profile_images": "profile-images"}},
    },
    "ecommerce": {
        "enable_real_images": True,
        "images_per_setup": 4,
        "setups_per_user": 3,
        "email_domain": "shop.test",
        "storage": {
            "buckets": {"product_images": "product-images", "profile_images": "profile-images"}
        },
    },
    "social": {
        "enable_real_images": True,
        "images_per_setup": 2,
        "user_count": 12,
        "email_domain": "social.test",
        "storage": {"buckets": {"post_media": "post-media", "profile_images": "profile-images"}},
    },
    "generic": {
        "enable_real_images": False,
        "images_per_setup": 1,
        "email_domain": "example.test",
        "storage": {"buckets": {"uploads": "uploads"}},
    },
}

DOMAIN_REASONING = {
    "outdoor": "Configured for outdoor domain with gear-focused image generation",
    "saas": "Configured for SaaS domain with productivity focus and team accounts",
    "ecommerce": "Configured for e-commerce domain with product-focused content generation",
    "social": "Configured for social domain with user interaction focus",
    "generic": "Configured for generic domain with basic content generation",
}

DOMAIN_WARNINGS = {
    "generic": "Generic domain detected - configuration may not be optimally tailored",
}

# Minimal mode keeps only the team account switch and the domain label
ESSENTIAL_ARCHITECTURE: dict[str, dict[str, Any]] = {
    "individual": {"create_team_accounts": False},
    "team": {"create_team_accounts": True},
    "hybrid": {"create_team_accounts": True},
}

OPTIMIZED_USER_COUNTS = {"individual": 5, "team": 8, "hybrid": 10}
DEFAULT_OPTIMIZED_USER_COUNT = 6

# (setups_per_user, images_per_setup)
OPTIMIZED_VOLUMES = {
    "outdoor": (2, 3),
    "saas": (1, 1),
    "ecommerce": (3, 4),
    "social": (2, 2),
    "generic": (2, 1),
}
DEFAULT_OPTIMIZED_VOLUME = (2, 2)

FALLBACK_CONFIGURATION: dict[str, Any] = {
    "user_count": 5,
    "setups_per_user": 2,
    "images_per_setup": 1,
    "domain": "generic",
    "enable_real_images": False,
    "create_team_accounts": False,
}


def architecture_defaults(label: str) -> dict[str, Any]:
    return copy.deepcopy(ARCHITECTURE_DEFAULTS.get(label, {}))


def domain_defaults(label: str) -> dict[str, Any]:
    settings = copy.deepcopy(DOMAIN_DEFAULTS.get(label, {}))
    if label in DOMAIN_DEFAULTS:
        settings["domain"] = label
    return settings


def essential_settings(architecture: str, domain: str) -> dict[str, Any]:
    settings = dict(ESSENTIAL_ARCHITECTURE.get(architecture, {}))
    if domain in DOMAIN_DEFAULTS:
        settings["domain"] = domain
    return settings


def optimized_volumes(architecture: str, domain: str) -> dict[str, int]:
    setups, images = OPTIMIZED_VOLUMES.get(domain, DEFAULT_OPTIMIZED_VOLUME)
    return {
        "user_count": OPTIMIZED_USER_COUNTS.get(architecture, DEFAULT_OPTIMIZED_USER_COUNT),
        "setups_per_user": setups,
        "images_per_setup": images,
    }
