# This file is a part of WhatShouldWePlay
# Copyright (C) 2020 TGRCDev

# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.

# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

import requests
import threading
from typing import Dict, Optional, Tuple

from .library import Category

store_api_base = "https://store.steampowered.com/api/"

class CategoryCache:
    """Steam store categories, cached per app ID for the lifetime of the app.

    Lookups never raise. An app that has no categories, or whose lookup failed,
    is cached as an empty tuple so it doesn't trigger another store fetch.
    """

    def __init__(self, connect_timeout: Optional[float] = None, read_timeout: Optional[float] = None):
        self.connect_timeout = connect_timeout
        self.read_timeout = read_timeout
        self._cache: Dict[int, Tuple[Category, ...]] = {}
        self._lock = threading.Lock()

    def get_categories(self, appid: int) -> Tuple[Category, ...]:
        with self._lock:
            if appid in self._cache:
                return self._cache[appid]

        categories = self.fetch_categories(appid)

        with self._lock:
            self._cache[appid] = categories
        return categories

    def fetch_categories(self, appid: int) -> Tuple[Category, ...]:
        try:
            r = requests.get(
                store_api_base + "appdetails",
                {"appids": appid},
                timeout=(self.connect_timeout, self.read_timeout)
            )
            r.raise_for_status()
            app_data = r.json().get(str(appid)) or {}

            if not app_data.get("success"):
                return ()

            return tuple(
                Category(int(category["id"]), str(category.get("description", "")))
                for category in (app_data.get("data") or {}).get("categories", [])
            )
        except (requests.RequestException, ValueError, KeyError, TypeError, AttributeError) as e:
            print("Failed to fetch store categories for app {}: {}".format(appid, e))
            return ()

    def size(self) -> int:
        with self._lock:
            return len(self._cache)

    def clear(self):
        with self._lock:
            self._cache.clear()
