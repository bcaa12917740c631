# Unless explicitly stated otherwise all files in this repository are licensed
# under the 3-clause BSD style license (see LICENSE).
# This product includes software developed at Datadog (https://www.datadoghq.com/).
# Copyright 2019 Datadog, Inc.

from __future__ import annotations
import json
import os
from collections import defaultdict
from typing import Dict, Optional


class State:
    """Resources known locally, keyed by resource type then resource id.

    Only ``destination`` is persisted; ``source`` holds whatever was imported
    during the current run.
    """

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = path
        self.source: Dict[str, Dict] = defaultdict(dict)
        self.destination: Dict[str, Dict] = defaultdict(dict)

    def load(self) -> None:
        if not self.path or not os.path.exists(self.path):
            return
        with open(self.path, "r", encoding="utf-8") as f:
            data = json.load(f)
        self.destination = defaultdict(dict, data)

    def dump(self) -> None:
        if not self.path:
            return
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(dict(self.destination), f, indent=2, sort_keys=True)
