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

import locale
import unicodedata
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple

class Category(NamedTuple):
    id: int
    description: str

icon_url_format = "https://media.steampowered.com/steamcommunity/public/images/apps/{appid}/{hash}.jpg"

class Game(NamedTuple):
    appid: int
    name: str
    icon_hash: str = ""
    categories: Tuple[Category, ...] = ()

    @property
    def icon_url(self) -> str:
        if not self.icon_hash:
            return ""
        return icon_url_format.format(appid=self.appid, hash=self.icon_hash)

class Profile(NamedTuple):
    id: str
    display_name: str
    avatar_url: str = ""
    games: Tuple[Game, ...] = ()

class FilterState(NamedTuple):
    hidden: FrozenSet[int] = frozenset()
    categories: FrozenSet[int] = frozenset()

class ThresholdPolicy(NamedTuple):
    # When set, the highest selectable threshold is one below the profile count
    exclude_all: bool = False

# Sorts accented letters with their base letter ("Éclair" next to "eclair"), ignoring case.
# Names that only differ by accents or case fall back to the current collation locale.
def name_sort_key(name: str) -> Tuple[str, str]:
    folded = name.casefold()
    decomposed = unicodedata.normalize("NFD", folded)
    base = "".join(c for c in decomposed if unicodedata.category(c) != "Mn")
    return base, locale.strxfrm(folded)

# JSON conversion
#
# Profile JSON format:
# ["id"]: Steam ID, as a string
# ["name"]: The user's Steam screen name
# ["avatar"]: A url to the user's full size avatar (blank if they have none)
# ["games"]: List of game dictionaries:
#     ["appid"]: Steam app ID (integer)
#     ["name"]: The game's name
#     ["img_icon_url"]: Steam's icon hash for the game (blank if it has none)
#     ["icon_url"]: A url to the game's icon, built from the hash. Ignored when parsing.
#     ["categories"]: List of {"id", "description"} dictionaries. Only present if categories were requested.

def category_from_json(data: Mapping[str, Any]) -> Category:
    return Category(int(data["id"]), str(data.get("description", "")))

def game_from_json(data: Mapping[str, Any]) -> Game:
    return Game(
        int(data["appid"]),
        str(data.get("name") or ""),
        str(data.get("img_icon_url") or ""),
        tuple(category_from_json(category) for category in data.get("categories") or [])
    )

def game_to_json(game: Game, include_categories: bool = True) -> Dict[str, Any]:
    game_dict = {
        "appid": game.appid,
        "name": game.name,
        "img_icon_url": game.icon_hash,
        "icon_url": game.icon_url
    }
    if include_categories:
        game_dict["categories"] = [category._asdict() for category in game.categories]
    return game_dict

def profile_from_json(data: Mapping[str, Any]) -> Profile:
    return Profile(
        str(data["id"]),
        str(data.get("name") or ""),
        str(data.get("avatar") or ""),
        tuple(game_from_json(game) for game in data.get("games") or [])
    )

def profile_to_json(profile: Profile, include_categories: bool = True) -> Dict[str, Any]:
    return {
        "games": [game_to_json(game, include_categories) for game in profile.games],
        "avatar": profile.avatar_url,
        "name": profile.display_name,
        "id": profile.id
    }

# Profile set helpers. Profile sets are tuples and are never modified in place.

def add_profile(profiles: Sequence[Profile], profile: Profile) -> Tuple[Profile, ...]:
    if any(existing.id == profile.id for existing in profiles):
        return tuple(profiles)
    return tuple(profiles) + (profile,)

def remove_profile(profiles: Sequence[Profile], profile_id: str) -> Tuple[Profile, ...]:
    return tuple(profile for profile in profiles if profile.id != profile_id)

# Threshold bounds
#
# Returns: (lowest, highest) selectable threshold for the given profile count.
# The range never drops below (1, 1), even with zero profiles.
def threshold_bounds(profile_count: int, policy: ThresholdPolicy = ThresholdPolicy()) -> Tuple[int, int]:
    highest = profile_count - 1 if policy.exclude_all else profile_count
    return 1, max(highest, 1)

def clamp_threshold(threshold: Optional[int], profile_count: int, policy: ThresholdPolicy = ThresholdPolicy()) -> int:
    lowest, highest = threshold_bounds(profile_count, policy)
    if threshold is None:
        return highest
    return min(max(threshold, lowest), highest)

# Counts how many profiles own each game
#
# Returns: Dictionary, in the order each app ID was first encountered.
# The key is a Steam app ID, and the value is a tuple of (owner count, first Game seen with that ID)
def aggregate(profiles: Iterable[Profile]) -> Dict[int, Tuple[int, Game]]:
    counts = {}
    for profile in profiles:
        seen = set()
        for game in profile.games:
            if game.appid in seen:
                continue
            seen.add(game.appid)
            if game.appid in counts:
                count, representative = counts[game.appid]
                counts[game.appid] = (count + 1, representative)
            else:
                counts[game.appid] = (1, game)
    return counts

# Finds the games owned by at least `threshold` profiles
#
# A single profile always returns its whole library, whatever the threshold.
# Returns: List of Games sorted by name. Games with equal names keep the order they were found in.
def common_games(profiles: Sequence[Profile], threshold: int) -> List[Game]:
    if len(profiles) == 0:
        return []

    if len(profiles) == 1:
        games = [game for _, game in aggregate(profiles).values()]
    else:
        games = [game for count, game in aggregate(profiles).values() if count >= threshold]

    return sorted(games, key=lambda game: name_sort_key(game.name))

# Returns: List of every distinct Category used by the given games, sorted by description.
# If two games disagree on a category's description, the first one seen is kept.
def category_index(games: Iterable[Game]) -> List[Category]:
    categories = {}
    for game in games:
        for category in game.categories:
            if category.id not in categories:
                categories[category.id] = category
    return sorted(categories.values(), key=lambda category: name_sort_key(category.description))

# Filter state updates. Each returns a new FilterState.

def hide_game(state: FilterState, appid: int) -> FilterState:
    return state._replace(hidden=state.hidden | {appid})

def show_game(state: FilterState, appid: int) -> FilterState:
    return state._replace(hidden=state.hidden - {appid})

def toggle_category(state: FilterState, category_id: int) -> FilterState:
    if category_id in state.categories:
        return state._replace(categories=state.categories - {category_id})
    return state._replace(categories=state.categories | {category_id})

def reset_filters() -> FilterState:
    return FilterState()

def filter_state_from_lists(hidden: Iterable[Any] = (), categories: Iterable[Any] = ()) -> FilterState:
    state = reset_filters()
    for appid in hidden:
        state = hide_game(state, int(appid))
    for category_id in {int(category_id) for category_id in categories}:
        state = toggle_category(state, category_id)
    return state

# Applies the filter state to a list of games
#
# Hidden games are always removed. If any categories are selected, a game is kept
# when at least one of its categories is selected.
def visible_games(games: Iterable[Game], state: FilterState) -> List[Game]:
    visible = []
    for game in games:
        if game.appid in state.hidden:
            continue
        if state.categories and not any(category.id in state.categories for category in game.categories):
            continue
        visible.append(game)
    return visible
