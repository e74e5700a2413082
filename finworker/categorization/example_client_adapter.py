"""Offline categorization client.

Answers ``Misc`` for every numbered line, which leaves rule results in place.
Handy for local runs without an AI key, and as the smallest reference when
adding another BaseCategorizationClient to CategorizerFactory.
"""

import re

from finworker.canonical.categories import CATCH_ALL_CATEGORY
from finworker.categorization.client_base import BaseCategorizationClient

_INDEX_LINE = re.compile(r"^(\d+)\t", re.MULTILINE)


class ExampleClientAdapter(BaseCategorizationClient):
    def label_transactions(self, prompt: str) -> dict[int, str]:
        return {int(index): CATCH_ALL_CATEGORY for index in _INDEX_LINE.findall(prompt)}
