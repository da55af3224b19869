from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

from .models import ReceiptCategory

DEFAULT_DATE_FORMATS = ["%Y-%m-%d", "%Y/%m/%d", "%Y%m%d", "%Y年%m月%d日"]


class ClassificationConfig(BaseModel):
    """Tunables shared by every stage of a classification call."""

    # Separator for IN_LIST comparison values; elements are trimmed.
    in_list_separator: str = ","
    # Tried in order when a DATE field or comparison value is a string.
    date_formats: List[str] = Field(default_factory=lambda: list(DEFAULT_DATE_FORMATS))

    # Outcome for receipts no rule matched. None leaves them untouched.
    unmatched_category: Optional[ReceiptCategory] = None
    unmatched_generate_archive_number: bool = False

    # Archive category code used when neither the action nor the directive names a category.
    default_category_code: str = ReceiptCategory.OTHER.archive_code


def load_config(path: Optional[Path]) -> ClassificationConfig:
    if path is None or not path.exists():
        return ClassificationConfig()
    with path.open(encoding="utf-8") as handle:
        raw = json.load(handle)
    return ClassificationConfig.model_validate(raw)
