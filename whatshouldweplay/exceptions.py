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

class SteamAPIException(Exception):
    status_code = None

    def __init__(self, status_code: int):
        self.status_code = status_code

    def __str__(self):
        return "SteamAPIException, A Steam API request failed with HTTP status {}".format(self.status_code)

class SteamBadWebkeyException(SteamAPIException):
    def __init__(self):
        super().__init__(403)

    def __str__(self):
        return "SteamBadWebkeyException, The Steam API rejected the configured web key"

class SteamTimeoutException(SteamAPIException):
    endpoint = None

    def __init__(self, endpoint: str):
        super().__init__(None)
        self.endpoint = endpoint

    def __str__(self):
        return "SteamTimeoutException, Steam took too long to respond to {}".format(self.endpoint)

# Raised when Steam has no public summary for a Steam ID
class SteamUserException(Exception):
    steam_id = None

    def __init__(self, steam_id: str):
        self.steam_id = steam_id

    def __str__(self):
        return "SteamUserException, Steam returned no player summary for the Steam ID {}".format(self.steam_id)

class SteamBadVanityUrlException(Exception):
    identifier = None

    def __init__(self, identifier: str):
        self.identifier = identifier

    def __str__(self):
        return "SteamBadVanityUrlException, \"{}\" could not be resolved to a Steam ID".format(self.identifier)
