from datetime import timedelta
from unittest.mock import MagicMock

from redis.exceptions import ResponseError

from volunteer_hub.config import Settings
from volunteer_hub.core.cache import CacheManager
from volunteer_hub.core.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from volunteer_hub.core.security import create_access_token, decode_token
from volunteer_hub.utils.helpers import round_decimal, round_half_up


def test_error_kinds_and_statuses():
    assert NotFoundError("x").to_dict() == {"error": "not_found", "detail": "x"}
    assert (ForbiddenError("x").status_code, ConflictError("x").status_code, ValidationError("x").status_code) == (
        403, 409, 422
    )


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(2.49) == 2
    assert round_decimal(4.125) == 4.13
    assert round_decimal(4.0 / 3) == 1.33


def test_access_token_round_trip():
    token = create_access_token("abc")
    assert decode_token(token)["sub"] == "abc"
    assert decode_token(create_access_token("abc", timedelta(seconds=-5))) is None
    assert decode_token("garbage") is None


def test_disabled_cache_never_debounces():
    cache = CacheManager(Settings(CACHE_ENABLED=False, CACHE_KEY_PREFIX="vh"))
    assert cache.key("opportunity_view", 1, "10.0.0.1") == "vh:opportunity_view:1:10.0.0.1"
    assert cache.set_if_absent("k", 30) is True
    assert cache.set_if_absent("k", 30) is True
    assert cache.get_stats() == {"enabled": False, "connected": False}


def test_set_if_absent_uses_nx_with_expiry():
    cache = CacheManager(Settings(CACHE_ENABLED=True))
    cache._client = MagicMock()
    cache._client.set.side_effect = [True, None]

    assert cache.set_if_absent("vh:k", 30) is True
    assert cache.set_if_absent("vh:k", 30) is False
    cache._client.set.assert_called_with("vh:k", "1", nx=True, ex=30)


def test_redis_errors_fall_back_to_counting():
    cache = CacheManager(Settings(CACHE_ENABLED=True))
    cache._client = MagicMock()
    cache._client.set.side_effect = ResponseError("READONLY")

    assert cache.set_if_absent("vh:k", 30) is True
