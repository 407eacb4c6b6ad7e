from __future__ import annotations

__version__ = "0.1.0"

PRODUCT_NAME = "yutu"
RELEASE_REPO = "eat-pray-ai/yutu"
