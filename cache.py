# cache.py
import enum
import logging

from recency import get_policy

logger = logging.getLogger(__name__)

ADDRESS_LENGTH = 64  # bits
ADDRESS_MASK = (1 << ADDRESS_LENGTH) - 1


class CacheError(Exception):
    pass


class GeometryError(CacheError, ValueError):
    pass


class AllocationError(CacheError, MemoryError):
    pass


class CacheClosedError(CacheError):
    pass


class AccessResult(enum.Enum):
    HIT = "hit"
    MISS = "miss"
    MISS_EVICTION = "miss eviction"

    @property
    def tokens(self):
        return self.value

    @property
    def is_miss(self):
        return self is not AccessResult.HIT

    @property
    def is_eviction(self):
        return self is AccessResult.MISS_EVICTION


class Line:
    __slots__ = ("valid", "tag", "recency", "last_used")

    def __init__(self):
        self.valid = False
        self.tag = 0
        self.recency = 0  # 0 = most recently used
        self.last_used = 0

    def __repr__(self):
        return "Line(valid=%s, tag=%#x, recency=%d)" % (self.valid, self.tag, self.recency)


class CacheSet:
    """Fixed array of E lines, addressed by way index."""

    __slots__ = ("lines", "clock")

    def __init__(self, associativity):
        self.lines = [Line() for _ in range(associativity)]
        self.clock = 0

    def __len__(self):
        return len(self.lines)

    def valid_count(self):
        return sum(1 for line in self.lines if line.valid)


def validate_geometry(s, E, b):
    if s < 0 or b < 0:
        raise GeometryError("set bits and block bits must be non-negative (s=%d, b=%d)" % (s, b))
    if E < 1:
        raise GeometryError("associativity must be at least 1 (E=%d)" % E)
    if s + b > ADDRESS_LENGTH:
        raise GeometryError(
            "s + b = %d exceeds the %d-bit address width" % (s + b, ADDRESS_LENGTH))


def decode_address(address, s, b):
    """
    Split `address` into (set_index, tag).
    The low `b` block-offset bits are discarded, the next `s` bits select the
    set and everything above them is the tag.
    """
    address &= ADDRESS_MASK
    set_index = (address >> b) & ((1 << s) - 1)
    tag = address >> (s + b)
    return set_index, tag


class Cache:
    """
    Set-associative cache model with S = 2^s sets of E lines each.
    Only classifies accesses as hit / miss / miss-with-eviction; no data is stored.
    """

    def __init__(self, s, E, b, policy="counter"):
        validate_geometry(s, E, b)
        self.s = s
        self.E = E
        self.b = b
        self.S = 1 << s
        self.policy = get_policy(policy)
        self.sets = []
        try:
            for _ in range(self.S):
                self.sets.append(CacheSet(E))
        except MemoryError as exc:
            # unwind whatever was built before the failure
            self.sets.clear()
            self.sets = None
            raise AllocationError(
                "could not allocate %d sets of %d lines" % (self.S, E)) from exc
        logger.info("cache created: s=%d E=%d b=%d (%d sets, policy=%s)",
                    s, E, b, self.S, self.policy.name)

    @classmethod
    def create(cls, s, E, b, policy="counter"):
        return cls(s, E, b, policy=policy)

    @property
    def closed(self):
        return self.sets is None

    def destroy(self):
        if self.sets is None:
            return
        for cache_set in self.sets:
            cache_set.lines.clear()
        self.sets = None
        logger.info("cache destroyed")

    close = destroy

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.destroy()

    def decode(self, address):
        return decode_address(address, self.s, self.b)

    def access(self, address):
        """
        Access `address` and return the AccessResult.
        Updates recency state of the one set the address maps to.
        """
        if self.sets is None:
            raise CacheClosedError("cache has been destroyed")
        set_index, tag = self.decode(address)
        cache_set = self.sets[set_index]
        lines = cache_set.lines

        for way, line in enumerate(lines):
            if line.valid and line.tag == tag:
                self.policy.touch(cache_set, way)
                logger.debug("%#x set=%d tag=%#x way=%d hit", address, set_index, tag, way)
                return AccessResult.HIT

        for way, line in enumerate(lines):
            if not line.valid:
                line.valid = True
                line.tag = tag
                self.policy.touch(cache_set, way)
                logger.debug("%#x set=%d tag=%#x way=%d miss", address, set_index, tag, way)
                return AccessResult.MISS

        way = self.policy.find_eviction_candidate(cache_set)
        victim = lines[way]
        logger.debug("%#x set=%d tag=%#x way=%d miss eviction (old tag %#x)",
                     address, set_index, tag, way, victim.tag)
        victim.tag = tag
        self.policy.touch(cache_set, way)
        return AccessResult.MISS_EVICTION

    def stats(self):
        if self.sets is None:
            raise CacheClosedError("cache has been destroyed")
        used_lines = sum(cache_set.valid_count() for cache_set in self.sets)
        return {
            "set_bits": self.s,
            "associativity": self.E,
            "block_bits": self.b,
            "num_sets": self.S,
            "block_size": 1 << self.b,
            "used_lines": used_lines,
            "replacement": self.policy.name,
        }
