from brain_db.core.token_cache import TokenCache


def make_cache(start=1000.0):
    now = [start]
    return TokenCache(clock=lambda: now[0]), now


def test_token_valid_until_expiry():
    cache, now = make_cache()
    cache.store("aps:2legged", "abc", expires_in=3600)
    now[0] += 3599
    assert cache.get("aps:2legged").access_token == "abc"
    now[0] += 1
    assert cache.get("aps:2legged") is None


def test_expiry_buffer_shortens_lifetime():
    cache, now = make_cache()
    cache.store("acc:3legged", "abc", expires_in=3600, buffer_seconds=300)
    now[0] += 3300
    assert cache.get("acc:3legged") is None


def test_peek_keeps_expired_entry_for_refresh():
    cache, now = make_cache()
    cache.store("acc:3legged", "abc", expires_in=10, refresh_token="r1")
    now[0] += 60
    assert cache.get("acc:3legged") is None
    assert cache.peek("acc:3legged").refresh_token == "r1"


def test_keys_are_independent():
    cache, _ = make_cache()
    cache.store("aps:2legged", "one", expires_in=100)
    cache.store("acc:2legged", "two", expires_in=100)
    cache.clear("aps:2legged")
    assert cache.get("aps:2legged") is None
    assert cache.get("acc:2legged").access_token == "two"


def test_status_reports_lengths_not_tokens():
    cache, now = make_cache()
    assert cache.status("acc:3legged")["has_token"] is False
    cache.store("acc:3legged", "secret-token", expires_in=100, refresh_token="refresh")
    status = cache.status("acc:3legged")
    assert status["is_valid"] is True
    assert status["expires_in"] == 100
    assert status["access_token_length"] == len("secret-token")
    assert status["refresh_token_length"] == len("refresh")
    assert "secret-token" not in str(status)
    now[0] += 200
    assert cache.status("acc:3legged")["is_valid"] is False
