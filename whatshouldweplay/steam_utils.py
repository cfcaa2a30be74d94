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

import re
import requests
from requests.exceptions import ConnectTimeout, ReadTimeout
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Mapping, Optional

from .exceptions import SteamAPIException, SteamBadWebkeyException, SteamTimeoutException, SteamUserException, SteamBadVanityUrlException
from .library import Game, Profile
from .store_utils import CategoryCache

api_base = "https://api.steampowered.com/"

steam_id_pattern = re.compile(r"^\d{17}$")
profile_url_pattern = re.compile(r"steamcommunity\.com/(id|profiles)/([^/?#]+)")

def steam_get(endpoint: str, params: Mapping[str, Any], connect_timeout: Optional[float] = None, read_timeout: Optional[float] = None) -> Dict[str, Any]:
    try:
        r = requests.get(
            api_base + endpoint,
            params,
            timeout=(connect_timeout, read_timeout)
        )
    except (ConnectTimeout, ReadTimeout):
        raise SteamTimeoutException(endpoint)

    if r.status_code == 403:
        raise SteamBadWebkeyException()
    elif r.status_code != 200:
        raise SteamAPIException(r.status_code)

    return r.json()

# Fetches the games a user owns, including their names and icons
#
# Private profiles and empty libraries both return an empty list.
# Returns: List of Games, in the order Steam returned them (without categories)
def get_owned_steam_games(webkey: str, steamid: str, include_free_games: bool = False, connect_timeout: Optional[float] = None, read_timeout: Optional[float] = None) -> List[Game]:
    response = steam_get(
        "IPlayerService/GetOwnedGames/v0001/",
        {
            "key": webkey,
            "steamid": steamid,
            "include_appinfo": True,
            "include_played_free_games": include_free_games,
            "format": "json"
        },
        connect_timeout,
        read_timeout
    ).get("response", {})

    games = []
    for game in response.get("games", []):
        games.append(Game(
            int(game["appid"]),
            game.get("name", ""),
            game.get("img_icon_url") or ""
        ))
    return games

# Fetches public information about a Steam user
#
# Returns: Dictionary
# ["id"]: Steam ID, as a string
# ["name"]: The user's Steam screen name
# ["avatar"]: A url to the full size version of their Steam avatar picture, or blank if missing
def get_steam_user_summary(webkey: str, steamid: str, connect_timeout: Optional[float] = None, read_timeout: Optional[float] = None) -> Dict[str, str]:
    response = steam_get(
        "ISteamUser/GetPlayerSummaries/v0002/",
        {"key": webkey, "steamids": steamid, "format": "json"},
        connect_timeout,
        read_timeout
    ).get("response", {})

    players = response.get("players", [])
    if not players:
        raise SteamUserException(steamid)

    player = players[0]
    return {
        "id": str(player.get("steamid", steamid)),
        "name": player.get("personaname", ""),
        "avatar": player.get("avatarfull", "")
    }

# Turns whatever the user typed into a Steam ID
#
# Accepts a 17 digit Steam ID, a vanity name, or a steamcommunity.com profile url.
# Raises SteamBadVanityUrlException if Steam doesn't recognize the vanity name.
def resolve_steam_id(webkey: str, identifier: str, connect_timeout: Optional[float] = None, read_timeout: Optional[float] = None) -> str:
    identifier = identifier.strip()

    url_match = profile_url_pattern.search(identifier)
    if url_match:
        identifier = url_match.group(2)

    if steam_id_pattern.match(identifier):
        return identifier

    response = steam_get(
        "ISteamUser/ResolveVanityURL/v0001/",
        {"key": webkey, "vanityurl": identifier, "format": "json"},
        connect_timeout,
        read_timeout
    ).get("response", {})

    if response.get("success") != 1 or "steamid" not in response:
        raise SteamBadVanityUrlException(identifier)
    return str(response["steamid"])

def add_categories(games: List[Game], category_cache: CategoryCache, max_workers: int = 8) -> List[Game]:
    if not games:
        return []
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(games))), thread_name_prefix="wswp_categories") as executor:
        categories = list(executor.map(category_cache.get_categories, [game.appid for game in games]))
    return [game._replace(categories=game_categories) for game, game_categories in zip(games, categories)]

# Builds a user's Profile
#
# The owned games and user summary are requested at the same time. If either
# request fails, its exception is raised and no Profile is returned.
# If a category cache is given, every game is tagged with its store categories.
def fetch_profile(
    webkey: str,
    steamid: str,
    category_cache: Optional[CategoryCache] = None,
    include_free_games: bool = False,
    connect_timeout: Optional[float] = None,
    read_timeout: Optional[float] = None,
    category_workers: int = 8
) -> Profile:
    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="wswp_profile") as executor:
        games_future = executor.submit(get_owned_steam_games, webkey, steamid, include_free_games, connect_timeout, read_timeout)
        summary_future = executor.submit(get_steam_user_summary, webkey, steamid, connect_timeout, read_timeout)
        games = games_future.result()
        summary = summary_future.result()

    if category_cache is not None:
        games = add_categories(games, category_cache, category_workers)

    return Profile(summary["id"], summary["name"], summary["avatar"], tuple(games))
