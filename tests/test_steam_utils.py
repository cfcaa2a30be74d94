#!/usr/bin/env python3
"""
Tests for:
  - get_owned_steam_games() / get_steam_user_summary() response normalization
  - resolve_steam_id() for Steam IDs, vanity names and profile urls
  - fetch_profile() joining both requests and tagging categories
  - CategoryCache lookups and caching of empty results

Run with:
    python -m pytest tests/test_steam_utils.py
"""
import os
import sys
import unittest
from unittest.mock import MagicMock, patch

import requests

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from whatshouldweplay.exceptions import (
    SteamAPIException, SteamBadVanityUrlException, SteamBadWebkeyException,
    SteamTimeoutException, SteamUserException,
)
from whatshouldweplay.library import Category, Game
from whatshouldweplay.steam_utils import (
    fetch_profile, get_owned_steam_games, get_steam_user_summary, resolve_steam_id,
)
from whatshouldweplay.store_utils import CategoryCache


STEAM_ID = '76561198000000001'

OWNED_GAMES = {
    'response': {
        'game_count': 2,
        'games': [
            {'appid': 620, 'name': 'Portal 2', 'img_icon_url': 'abc123'},
            {'appid': 570, 'name': 'Dota 2', 'img_icon_url': ''},
        ]
    }
}

PLAYER_SUMMARY = {
    'response': {
        'players': [
            {'steamid': STEAM_ID, 'personaname': 'alice', 'avatarfull': 'https://avatars/alice_full.jpg'}
        ]
    }
}


def _response(payload=None, status_code=200):
    mock_resp = MagicMock()
    mock_resp.status_code = status_code
    mock_resp.json.return_value = payload
    if status_code >= 400:
        mock_resp.raise_for_status.side_effect = requests.HTTPError(str(status_code))
    return mock_resp


def _steam_api(owned=OWNED_GAMES, summary=PLAYER_SUMMARY):
    def fake_get(url, params=None, timeout=None):
        if 'GetOwnedGames' in url:
            return owned if isinstance(owned, MagicMock) else _response(owned)
        if 'GetPlayerSummaries' in url:
            return summary if isinstance(summary, MagicMock) else _response(summary)
        raise AssertionError('unexpected url ' + url)
    return fake_get


# ===========================================================================
# get_owned_steam_games
# ===========================================================================

class TestGetOwnedSteamGames(unittest.TestCase):

    def test_parses_games(self):
        with patch('whatshouldweplay.steam_utils.requests.get', return_value=_response(OWNED_GAMES)) as mock_get:
            games = get_owned_steam_games('FAKE_KEY', STEAM_ID)
        self.assertEqual([game.appid for game in games], [620, 570])
        self.assertEqual(games[0].name, 'Portal 2')
        self.assertEqual(
            games[0].icon_url,
            'https://media.steampowered.com/steamcommunity/public/images/apps/620/abc123.jpg'
        )
        self.assertEqual(games[0].icon_hash, 'abc123')
        self.assertEqual(games[1].icon_url, '')
        params = mock_get.call_args[0][1]
        self.assertEqual(params['steamid'], STEAM_ID)
        self.assertTrue(params['include_appinfo'])

    def test_private_library_is_empty(self):
        with patch('whatshouldweplay.steam_utils.requests.get', return_value=_response({'response': {}})):
            self.assertEqual(get_owned_steam_games('FAKE_KEY', STEAM_ID), [])

    def test_bad_webkey(self):
        with patch('whatshouldweplay.steam_utils.requests.get', return_value=_response(None, 403)):
            with self.assertRaises(SteamBadWebkeyException):
                get_owned_steam_games('FAKE_KEY', STEAM_ID)

    def test_server_error(self):
        with patch('whatshouldweplay.steam_utils.requests.get', return_value=_response(None, 500)):
            with self.assertRaises(SteamAPIException) as ctx:
                get_owned_steam_games('FAKE_KEY', STEAM_ID)
        self.assertEqual(ctx.exception.status_code, 500)

    def test_timeout(self):
        with patch('whatshouldweplay.steam_utils.requests.get', side_effect=requests.exceptions.ReadTimeout()):
            with self.assertRaises(SteamTimeoutException):
                get_owned_steam_games('FAKE_KEY', STEAM_ID, read_timeout=1.0)


# ===========================================================================
# get_steam_user_summary
# ===========================================================================

class TestGetSteamUserSummary(unittest.TestCase):

    def test_parses_player(self):
        with patch('whatshouldweplay.steam_utils.requests.get', return_value=_response(PLAYER_SUMMARY)):
            summary = get_steam_user_summary('FAKE_KEY', STEAM_ID)
        self.assertEqual(summary, {'id': STEAM_ID, 'name': 'alice', 'avatar': 'https://avatars/alice_full.jpg'})

    def test_missing_avatar_is_blank(self):
        payload = {'response': {'players': [{'steamid': STEAM_ID, 'personaname': 'bob'}]}}
        with patch('whatshouldweplay.steam_utils.requests.get', return_value=_response(payload)):
            self.assertEqual(get_steam_user_summary('FAKE_KEY', STEAM_ID)['avatar'], '')

    def test_unknown_user(self):
        with patch('whatshouldweplay.steam_utils.requests.get', return_value=_response({'response': {'players': []}})):
            with self.assertRaises(SteamUserException):
                get_steam_user_summary('FAKE_KEY', STEAM_ID)


# ===========================================================================
# resolve_steam_id
# ===========================================================================

class TestResolveSteamId(unittest.TestCase):

    def test_steam_id_used_as_is(self):
        with patch('whatshouldweplay.steam_utils.requests.get') as mock_get:
            self.assertEqual(resolve_steam_id('FAKE_KEY', ' ' + STEAM_ID + ' '), STEAM_ID)
        mock_get.assert_not_called()

    def test_profile_url(self):
        with patch('whatshouldweplay.steam_utils.requests.get') as mock_get:
            url = 'https://steamcommunity.com/profiles/%s/' % STEAM_ID
            self.assertEqual(resolve_steam_id('FAKE_KEY', url), STEAM_ID)
        mock_get.assert_not_called()

    def test_vanity_name(self):
        payload = {'response': {'success': 1, 'steamid': STEAM_ID}}
        with patch('whatshouldweplay.steam_utils.requests.get', return_value=_response(payload)) as mock_get:
            self.assertEqual(resolve_steam_id('FAKE_KEY', 'https://steamcommunity.com/id/alice'), STEAM_ID)
        self.assertEqual(mock_get.call_args[0][1]['vanityurl'], 'alice')

    def test_unknown_vanity_name(self):
        payload = {'response': {'success': 42, 'message': 'No match'}}
        with patch('whatshouldweplay.steam_utils.requests.get', return_value=_response(payload)):
            with self.assertRaises(SteamBadVanityUrlException):
                resolve_steam_id('FAKE_KEY', 'nobody')


# ===========================================================================
# fetch_profile
# ===========================================================================

class TestFetchProfile(unittest.TestCase):

    def test_builds_profile(self):
        with patch('whatshouldweplay.steam_utils.requests.get', side_effect=_steam_api()):
            profile = fetch_profile('FAKE_KEY', STEAM_ID)
        self.assertEqual(profile.id, STEAM_ID)
        self.assertEqual(profile.display_name, 'alice')
        self.assertEqual(profile.avatar_url, 'https://avatars/alice_full.jpg')
        self.assertEqual([game.appid for game in profile.games], [620, 570])
        self.assertEqual(profile.games[0].categories, ())

    def test_failed_games_request_fails_profile(self):
        with patch('whatshouldweplay.steam_utils.requests.get', side_effect=_steam_api(owned=_response(None, 500))):
            with self.assertRaises(SteamAPIException):
                fetch_profile('FAKE_KEY', STEAM_ID)

    def test_failed_summary_request_fails_profile(self):
        with patch('whatshouldweplay.steam_utils.requests.get', side_effect=_steam_api(summary=_response(None, 503))):
            with self.assertRaises(SteamAPIException):
                fetch_profile('FAKE_KEY', STEAM_ID)

    def test_adds_categories_from_cache(self):
        cache = MagicMock()
        cache.get_categories.side_effect = lambda appid: (Category(1, 'Multi-player'),) if appid == 570 else ()
        with patch('whatshouldweplay.steam_utils.requests.get', side_effect=_steam_api()):
            profile = fetch_profile('FAKE_KEY', STEAM_ID, category_cache=cache)
        self.assertEqual(profile.games[0].categories, ())
        self.assertEqual(profile.games[1].categories, (Category(1, 'Multi-player'),))
        self.assertEqual(cache.get_categories.call_count, 2)


# ===========================================================================
# CategoryCache
# ===========================================================================

class TestCategoryCache(unittest.TestCase):

    def test_fetches_and_caches(self):
        payload = {'620': {'success': True, 'data': {'categories': [
            {'id': 2, 'description': 'Single-player'},
            {'id': 9, 'description': 'Co-op'},
        ]}}}
        cache = CategoryCache()
        with patch('whatshouldweplay.store_utils.requests.get', return_value=_response(payload)) as mock_get:
            first = cache.get_categories(620)
            second = cache.get_categories(620)
        self.assertEqual(first, (Category(2, 'Single-player'), Category(9, 'Co-op')))
        self.assertEqual(second, first)
        self.assertEqual(mock_get.call_count, 1)
        self.assertEqual(cache.size(), 1)

    def test_unsuccessful_lookup_cached_as_empty(self):
        cache = CategoryCache()
        with patch('whatshouldweplay.store_utils.requests.get', return_value=_response({'1': {'success': False}})) as mock_get:
            self.assertEqual(cache.get_categories(1), ())
            self.assertEqual(cache.get_categories(1), ())
        self.assertEqual(mock_get.call_count, 1)

    def test_app_without_categories(self):
        cache = CategoryCache()
        with patch('whatshouldweplay.store_utils.requests.get', return_value=_response({'5': {'success': True, 'data': {}}})):
            self.assertEqual(cache.get_categories(5), ())

    def test_request_failure_cached_as_empty(self):
        cache = CategoryCache()
        with patch('whatshouldweplay.store_utils.requests.get', side_effect=requests.ConnectionError()) as mock_get:
            self.assertEqual(cache.get_categories(7), ())
            self.assertEqual(cache.get_categories(7), ())
        self.assertEqual(mock_get.call_count, 1)

    def test_null_body_cached_as_empty(self):
        cache = CategoryCache()
        with patch('whatshouldweplay.store_utils.requests.get', return_value=_response(None)):
            self.assertEqual(cache.get_categories(8), ())
        self.assertEqual(cache.size(), 1)

    def test_clear(self):
        cache = CategoryCache()
        with patch('whatshouldweplay.store_utils.requests.get', return_value=_response({})):
            cache.get_categories(1)
            cache.get_categories(2)
        self.assertEqual(cache.size(), 2)
        cache.clear()
        self.assertEqual(cache.size(), 0)


if __name__ == '__main__':
    unittest.main()
