# simulator.py
import json
import logging
import os
import sys
from collections import namedtuple

from cache import Cache
from tracefile import LOAD, STORE, MODIFY

logger = logging.getLogger(__name__)


class SimulationResult(namedtuple("SimulationResult", ["hits", "misses", "evictions"])):
    __slots__ = ()

    @property
    def accesses(self):
        return self.hits + self.misses

    @property
    def hit_rate(self):
        return self.hits / self.accesses if self.accesses else 0.0

    @property
    def miss_rate(self):
        return self.misses / self.accesses if self.accesses else 0.0

    def summary(self):
        return {
            "hits": self.hits,
            "misses": self.misses,
            "evictions": self.evictions,
            "accesses": self.accesses,
            "hit_rate": self.hit_rate,
            "miss_rate": self.miss_rate,
        }

    def __str__(self):
        return "hits:%d misses:%d evictions:%d" % self


class TraceDriver:
    """
    Replays trace records against a cache.
    L and S are one access, M is a load followed by a store to the same
    address, everything else (instruction fetches) is ignored.
    """

    def __init__(self, cache: Cache, verbose=False, out=None):
        self.cache = cache
        self.verbose = verbose
        self.out = out
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def _access(self, address):
        outcome = self.cache.access(address)
        if outcome.is_miss:
            self.misses += 1
            if outcome.is_eviction:
                self.evictions += 1
        else:
            self.hits += 1
        return outcome

    def step(self, record):
        """Apply one record and return the list of outcomes it produced."""
        if record.operation in (LOAD, STORE):
            outcomes = [self._access(record.address)]
        elif record.operation == MODIFY:
            outcomes = [self._access(record.address), self._access(record.address)]
        else:
            return []
        if self.verbose:
            out = self.out if self.out is not None else sys.stdout
            out.write("%s %x,%d %s\n" % (
                record.operation, record.address, record.size,
                " ".join(outcome.tokens for outcome in outcomes)))
        return outcomes

    def run(self, records):
        for record in records:
            self.step(record)
        result = self.result()
        logger.info("simulation finished: %s", result)
        return result

    def result(self):
        return SimulationResult(self.hits, self.misses, self.evictions)


def simulate(s, E, b, records, policy="counter", verbose=False, out=None):
    with Cache.create(s, E, b, policy=policy) as cache:
        return TraceDriver(cache, verbose=verbose, out=out).run(records)


def save_results(result, out_cfg, geometry=None):
    results_dir = out_cfg.get("results_dir", "results")
    os.makedirs(results_dir, exist_ok=True)
    path = os.path.join(results_dir, out_cfg.get("summary_file", "summary.json"))
    summary = result.summary()
    if geometry is not None:
        summary["cache"] = geometry
    with open(path, "w") as f:
        json.dump(summary, f, indent=2)
    return path
