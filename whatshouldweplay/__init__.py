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

from flask import Flask, request, jsonify, render_template
from werkzeug.exceptions import BadRequest
import json
import locale
import math
import os
from os import path
import traceback

from .exceptions import SteamBadVanityUrlException
from .library import (
    ThresholdPolicy, profile_from_json, profile_to_json, game_from_json, game_to_json,
    common_games, category_index, visible_games, filter_state_from_lists,
    clamp_threshold, threshold_bounds, add_profile
)
from .spinner import Wheel, WheelEmptyError, wedges
from .steam_utils import fetch_profile, resolve_steam_id
from .store_utils import CategoryCache

def load_config():
    root_path = path.dirname(__file__)
    config_path = os.environ.get("WHATSHOULDWEPLAY_CONFIG", path.join(root_path, "config.json"))
    if not path.exists(config_path):
        print("No config file found at %s, using defaults" % config_path)
        return {}
    with open(config_path, "r") as config_file:
        return json.load(config_file)

def query_flag(value, default):
    if value is None:
        return default
    return value.lower() in ("1", "true", "yes", "on")

def create_app(config=None, category_cache=None):
    if config is None:
        config = load_config()

    # Name sorting collates with the system locale
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        print("Failed to set the collation locale, names will sort by code point within equal letters: %s" % e)

    steam_key = config.get("steam-key") or os.environ.get("STEAM_KEY")
    if not steam_key:
        raise RuntimeError("No Steam API key configured. Set \"steam-key\" in config.json or the STEAM_KEY environment variable.")
    debug = config.get("debug", config.get("DEBUG", False))
    connect_timeout = config.get("connect-timeout", 0.0)
    if connect_timeout <= 0.0:
        connect_timeout = None
    read_timeout = config.get("read-timeout", 0.0)
    if read_timeout <= 0.0:
        read_timeout = None
    include_free_games = config.get("include-free-games", False)
    fetch_categories = config.get("fetch-categories", False)
    category_workers = config.get("category-workers", 8)
    max_profiles = config.get("max-profiles", 10)
    threshold_policy = ThresholdPolicy(exclude_all=config.get("threshold-excludes-all", False))

    if category_cache is None:
        category_cache = CategoryCache(connect_timeout, read_timeout)

    # Create uWSGI callable
    app = Flask(__name__)
    app.debug = debug
    app.config["CATEGORY_CACHE"] = category_cache

    print("categories fetched by default: %s" % fetch_categories)
    print("threshold bounds exclude all profiles: %s" % threshold_policy.exclude_all)

    def error_response(error, status, message=None):
        body = {"error": error}
        if debug and message:
            body["message"] = message
        return jsonify(body), status

    def json_body():
        body = request.get_json(force=True, silent=True)
        if not isinstance(body, dict):
            raise BadRequest("Request body must be a JSON object")
        return body

    @app.errorhandler(BadRequest)
    def bad_request(e):
        return error_response("Bad request", 400, e.description)

    @app.route('/')
    def index():
        return render_template("home.html", max_profiles=max_profiles)

    # Fetch one user's profile and owned games
    #
    # Params:
    #     steamid: Steam ID, vanity name or profile url
    #     categories: "true" to tag each game with its store categories
    # Returns: {"games", "avatar", "name", "id"} (see library.profile_to_json)
    @app.route("/api/steam")
    def steam_profile():
        identifier = request.args.get("steamid", "").strip()
        if not identifier:
            return error_response("Steam ID required", 400)

        with_categories = query_flag(request.args.get("categories"), fetch_categories)

        try:
            steam_id = resolve_steam_id(steam_key, identifier, connect_timeout, read_timeout)
            profile = fetch_profile(
                steam_key,
                steam_id,
                category_cache if with_categories else None,
                include_free_games,
                connect_timeout,
                read_timeout,
                category_workers
            )
        except SteamBadVanityUrlException:
            return error_response("Steam ID not found", 400)
        except Exception:
            traceback.print_exc()
            return error_response("Failed to fetch data", 500, traceback.format_exc())

        print("Fetched %d games for Steam ID %s (%d apps in category cache)" % (len(profile.games), profile.id, category_cache.size()))
        return jsonify(profile_to_json(profile, with_categories))

    # Intersect the libraries of the given profiles and apply the filters
    #
    # Body:
    #     profiles: List of profiles, as returned by /api/steam
    #     threshold: Minimum number of owners. Clamped to the allowed range, defaults to every profile.
    #     hidden: List of app IDs to leave out
    #     categories: List of category IDs. If not empty, only games with one of these categories are shown.
    @app.route("/api/v1/common_games", methods=["POST"])
    def common_games_v1():
        body = json_body()
        try:
            profiles = ()
            for profile in body.get("profiles", []):
                profiles = add_profile(profiles, profile_from_json(profile))
            threshold = body.get("threshold")
            threshold = int(threshold) if threshold is not None else None
            filter_state = filter_state_from_lists(body.get("hidden", []), body.get("categories", []))
        except (ValueError, TypeError, KeyError, AttributeError, OverflowError) as e:
            raise BadRequest(str(e))

        if len(profiles) > max_profiles:
            return error_response("Too many profiles", 400)

        threshold = clamp_threshold(threshold, len(profiles), threshold_policy)
        games = common_games(profiles, threshold)
        visible = visible_games(games, filter_state)

        print("Intersection resulted in %d games (%d visible) across %d profiles" % (len(games), len(visible), len(profiles)))

        return jsonify({
            "games": [game_to_json(game) for game in games],
            "categories": [category._asdict() for category in category_index(games)],
            "visible": [game_to_json(game) for game in visible],
            "threshold": threshold,
            "threshold_bounds": list(threshold_bounds(len(profiles), threshold_policy))
        })

    # Spin the wheel over the given games
    #
    # Body:
    #     games: The games on the wheel, in wheel order
    #     rotation: The angle the wheel is currently resting at
    # Returns: the spin (start, distance, duration), where the wheel comes to rest, and the game it picked
    @app.route("/api/v1/spin", methods=["POST"])
    def spin_v1():
        body = json_body()
        try:
            games = [game_from_json(game) for game in body.get("games", [])]
            start_rotation = float(body.get("rotation", 0.0))
        except (ValueError, TypeError, KeyError, AttributeError, OverflowError) as e:
            raise BadRequest(str(e))

        if not math.isfinite(start_rotation):
            raise BadRequest("rotation must be a finite number")

        wheel = Wheel(games, start_rotation % 360)
        try:
            plan = wheel.spin()
        except WheelEmptyError:
            return error_response("No games to spin", 400)
        resting = wheel.advance(plan.duration)
        index = wheel.selected_index

        return jsonify({
            "start": plan.start,
            "distance": plan.distance,
            "duration": plan.duration,
            "rotation": resting,
            "index": index,
            "selected": game_to_json(wheel.selected),
            "wedges": wedges(games)
        })

    return app
