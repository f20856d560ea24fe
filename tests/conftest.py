import pytest
from unittest.mock import patch


class FakeRedis:
    """Dict-backed stand-in covering the commands the store layer uses."""

    def __init__(self):
        self.kv = {}
        self.hashes = {}
        self.zsets = {}
        self.lists = {}
        self.ttls = {}

    # strings
    def get(self, key):
        return self.kv.get(key)

    def set(self, key, value, px=None, nx=False, ex=None):
        if nx and key in self.kv:
            return None
        self.kv[key] = str(value)
        if px:
            self.ttls[key] = px
        return True

    def delete(self, *keys):
        n = 0
        for key in keys:
            for store in (self.kv, self.hashes, self.zsets, self.lists):
                if key in store:
                    del store[key]
                    n += 1
        return n

    def incr(self, key, by=1):
        self.kv[key] = str(int(self.kv.get(key) or 0) + by)
        return int(self.kv[key])

    def expire(self, key, seconds):
        self.ttls[key] = seconds
        return True

    # hashes
    def hset(self, key, mapping=None, **kwargs):
        self.hashes.setdefault(key, {}).update({k: str(v) for k, v in (mapping or {}).items()})
        return len(mapping or {})

    def hgetall(self, key):
        return dict(self.hashes.get(key, {}))

    # sorted sets
    def zadd(self, key, mapping):
        self.zsets.setdefault(key, {}).update(mapping)
        return len(mapping)

    def zrem(self, key, *members):
        z = self.zsets.get(key, {})
        return sum(1 for m in members if z.pop(m, None) is not None)

    def zrangebyscore(self, key, lo, hi, start=None, num=None):
        lo = float("-inf") if lo == "-inf" else float(lo)
        hi = float("inf") if hi == "+inf" else float(hi)
        items = sorted((s, m) for m, s in self.zsets.get(key, {}).items() if lo <= s <= hi)
        members = [m for _, m in items]
        if start is not None and num is not None:
            members = members[start:start + num]
        return members

    # lists
    def lpush(self, key, *values):
        lst = self.lists.setdefault(key, [])
        for v in values:
            lst.insert(0, str(v))
        return len(lst)

    def ltrim(self, key, start, end):
        lst = self.lists.get(key, [])
        self.lists[key] = lst[start:end + 1]
        return True

    def lrange(self, key, start, end):
        lst = self.lists.get(key, [])
        return lst[start:end + 1] if end >= 0 else lst[start:]

    # lock release script: compare-and-delete
    def eval(self, script, numkeys, key, token):
        if self.kv.get(key) == token:
            return self.delete(key)
        return 0

    def ping(self):
        return True

    def pipeline(self, transaction=True):
        return FakePipeline(self)


class FakePipeline:
    def __init__(self, r):
        self._r = r
        self._ops = []

    def __getattr__(self, name):
        target = getattr(self._r, name)

        def queue(*args, **kwargs):
            self._ops.append((target, args, kwargs))
            return self

        return queue

    def execute(self):
        return [fn(*a, **kw) for fn, a, kw in self._ops]


@pytest.fixture
def fake_redis():
    r = FakeRedis()
    with patch("helpdesk.store.session_repo.get_redis", return_value=r), \
         patch("helpdesk.store.artifact_cache.get_redis", return_value=r), \
         patch("helpdesk.utils.lock.get_redis", return_value=r), \
         patch("helpdesk.observability.metrics.get_redis", return_value=r):
        yield r
