"""
Crisis Resources

Category-aware helpline resolver. Shown to a student whenever the
classifier sets show_resources.

LEGAL_REVIEW_REQUIRED: Helpline numbers must be verified for each
deployment region before production. Built-in entries cover India;
other regions are supplied by a JSON override file.
"""

import json
import os
from dataclasses import dataclass, field
from typing import Optional

from unmute.config.logging_config import get_logger
from unmute.domain.enums.risk_stage import CrisisCategory

logger = get_logger(__name__)


@dataclass(frozen=True)
class CrisisResource:
    """
    A single helpline or support service.

    Attributes:
        key: Stable identifier (e.g. "suicide", "abuse")
        name: Display name
        phone: Number to call or text
        description: One-line description shown to the student
        available_24_7: Whether the line is always staffed
    """

    key: str
    name: str
    phone: str
    description: str = ""
    available_24_7: bool = False

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "name": self.name,
            "phone": self.phone,
            "description": self.description,
            "available_24_7": self.available_24_7,
        }

    def format_for_user(self) -> str:
        availability = " (24/7)" if self.available_24_7 else ""
        return f"• **{self.name}**: {self.phone}{availability}"


# LEGAL_REVIEW_REQUIRED: Verify all numbers before production
BUILT_IN_RESOURCES: dict[str, CrisisResource] = {
    "counselling": CrisisResource(
        key="counselling",
        name="iCall",
        phone="9152987821",
        description="Professional counselling support",
    ),
    "suicide": CrisisResource(
        key="suicide",
        name="AASRA",
        phone="9820466726",
        description="24/7 suicide prevention helpline",
        available_24_7=True,
    ),
    "abuse": CrisisResource(
        key="abuse",
        name="Childline India",
        phone="1098",
        description="For children facing abuse or violence",
        available_24_7=True,
    ),
    "women": CrisisResource(
        key="women",
        name="Women Helpline",
        phone="181",
        description="National Commission for Women",
        available_24_7=True,
    ),
}


# Resource keys shown per category, most relevant first
CATEGORY_RESOURCES: dict[CrisisCategory, tuple[str, ...]] = {
    CrisisCategory.SELF_HARM: ("suicide", "counselling"),
    CrisisCategory.ABUSE: ("abuse", "women", "counselling"),
    CrisisCategory.GENERIC_DISTRESS: ("counselling", "suicide"),
    CrisisCategory.NONE: (),
}


@dataclass
class ResourceBundle:
    """Resources resolved for one classified message."""

    category: CrisisCategory
    resources: list[CrisisResource] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "resources": [r.to_dict() for r in self.resources],
        }

    def format_for_user(self) -> str:
        if not self.resources:
            return ""
        lines = ["**You don't have to face this alone. Reach out now:**", ""]
        lines.extend(r.format_for_user() for r in self.resources)
        return "\n".join(lines)


class CrisisResourceResolver:
    """
    Resolves helplines for a crisis category.

    Entries from the optional JSON file replace built-in entries
    with the same key. The file maps keys to objects with name,
    phone, description and available_24_7.

    Usage:
        resolver = CrisisResourceResolver()
        bundle = resolver.for_category(CrisisCategory.SELF_HARM)
    """

    def __init__(self, config_path: Optional[str] = None) -> None:
        self._resources = dict(BUILT_IN_RESOURCES)

        if config_path:
            if os.path.exists(config_path):
                self._load_config(config_path)
            else:
                logger.warning("Crisis resources file not found", path=config_path)

    def _load_config(self, config_path: str) -> None:
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)

            for key, entry in data.items():
                self._resources[key] = CrisisResource(key=key, **entry)

            logger.info(
                "Loaded crisis resources config",
                path=config_path,
                resource_count=len(data),
            )
        except (OSError, ValueError, TypeError) as e:
            # Built-in entries stay in effect
            logger.error("Failed to load crisis resources config", path=config_path, error=str(e))

    def get(self, key: str) -> Optional[CrisisResource]:
        return self._resources.get(key)

    def for_category(self, category: CrisisCategory) -> ResourceBundle:
        keys = CATEGORY_RESOURCES.get(category, ())
        return ResourceBundle(
            category=category,
            resources=[self._resources[k] for k in keys if k in self._resources],
        )

    def list_resources(self) -> list[CrisisResource]:
        return list(self._resources.values())
