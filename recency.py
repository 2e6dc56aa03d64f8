# recency.py
"""
Replacement bookkeeping for a single cache set.

CounterRecency keeps one rank counter per line (0 = just used) and picks the
line whose rank equals E - 1 as the victim. Freshly filled lines are not aged
apart from each other, so several lines can share rank 0; when no line holds
rank E - 1 the victim falls back to way 0.

ClockRecency stamps each touched line with a per-set logical clock and evicts
the smallest stamp, which gives exact LRU order.
"""


class CounterRecency:
    name = "counter"

    def touch(self, cache_set, way):
        lines = cache_set.lines
        current = lines[way].recency
        for i, line in enumerate(lines):
            if i != way and line.valid and line.recency < current:
                line.recency += 1
        lines[way].recency = 0

    def find_eviction_candidate(self, cache_set):
        oldest = len(cache_set.lines) - 1
        for i, line in enumerate(cache_set.lines):
            if line.recency == oldest:
                return i
        return 0


class ClockRecency:
    name = "lru"

    def touch(self, cache_set, way):
        cache_set.clock += 1
        cache_set.lines[way].last_used = cache_set.clock

    def find_eviction_candidate(self, cache_set):
        victim = 0
        for i, line in enumerate(cache_set.lines):
            if line.last_used < cache_set.lines[victim].last_used:
                victim = i
        return victim


POLICIES = {
    CounterRecency.name: CounterRecency,
    ClockRecency.name: ClockRecency,
}


def get_policy(name):
    if not isinstance(name, str):
        return name
    try:
        return POLICIES[name.lower()]()
    except KeyError:
        raise ValueError("unknown replacement policy %r (choose from %s)"
                         % (name, ", ".join(sorted(POLICIES)))) from None
