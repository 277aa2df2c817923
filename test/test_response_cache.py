from smart_todo.models import Feature, ParsedTask
from storage.response_cache import ResponseCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_hit_within_ttl_is_marked_cached():
    clock = FakeClock()
    cache = ResponseCache(clock=clock)
    original = ParsedTask(task_name="Call Sarah", model_backed=True)
    cache.put(Feature.SMART_PARSE, "Call Sarah tomorrow", original)

    clock.now += 299
    hit = cache.get(Feature.SMART_PARSE, "Call Sarah tomorrow")
    assert hit is not None
    assert hit.cached is True
    assert hit.task_name == "Call Sarah"
    # the stored entry itself is untouched
    assert original.cached is False


def test_miss_after_five_minutes():
    clock = FakeClock()
    cache = ResponseCache(clock=clock)
    cache.put(Feature.SMART_PARSE, "Call Sarah", ParsedTask(task_name="Call Sarah"))

    clock.now += 300
    assert cache.get(Feature.SMART_PARSE, "Call Sarah") is None
    assert len(cache) == 0


def test_key_normalizes_case_and_whitespace():
    cache = ResponseCache()
    cache.put("smart-parse", "  Buy Milk ", ParsedTask(task_name="milk"))
    assert cache.get(Feature.SMART_PARSE, "buy milk") is not None


def test_features_do_not_share_entries():
    cache = ResponseCache()
    cache.put(Feature.SMART_PARSE, "launch product", ParsedTask(task_name="launch"))
    assert cache.get(Feature.TASK_BREAKDOWN, "launch product") is None


def test_instances_are_isolated():
    a, b = ResponseCache(), ResponseCache()
    a.put(Feature.SMART_PARSE, "x y", ParsedTask(task_name="x"))
    assert b.get(Feature.SMART_PARSE, "x y") is None
    a.clear()
    assert len(a) == 0
