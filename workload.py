# workload.py
import numpy as np

from tracefile import TraceRecord, LOAD, STORE, MODIFY


class WorkloadGenerator:
    """
    Synthetic data-access trace.
    Addresses are byte addresses stepping by `access_size` inside a working
    set of `working_set_bytes`.
    """

    def __init__(self, working_set_bytes=64 * 1024, access_size=8, access_pattern="mixed",
                 read_ratio=0.8, modify_ratio=0.0, random_seed=None):
        if access_pattern not in ("sequential", "random", "mixed"):
            raise ValueError("unknown access pattern %r" % access_pattern)
        if not 0.0 <= modify_ratio <= 1.0 or not 0.0 <= read_ratio <= 1.0:
            raise ValueError("read_ratio and modify_ratio must be within [0, 1]")
        self.rng = np.random.default_rng(random_seed)
        self.access_size = access_size
        self.access_pattern = access_pattern
        self.read_ratio = read_ratio
        self.modify_ratio = modify_ratio
        self.num_slots = max(1, working_set_bytes // access_size)
        self._seq_ptr = 0

    def _next_sequential(self):
        slot = self._seq_ptr
        self._seq_ptr = (slot + 1) % self.num_slots
        return slot

    def _next_slot(self):
        if self.access_pattern == "sequential":
            return self._next_sequential()
        elif self.access_pattern == "random":
            return int(self.rng.integers(0, self.num_slots))
        else:  # mixed: mostly sequential with some random
            if self.rng.random() < 0.8:
                return self._next_sequential()
            return int(self.rng.integers(0, self.num_slots))

    def _next_operation(self):
        if self.rng.random() < self.modify_ratio:
            return MODIFY
        return LOAD if self.rng.random() < self.read_ratio else STORE

    def generate(self, num_requests):
        records = []
        for _ in range(num_requests):
            address = self._next_slot() * self.access_size
            records.append(TraceRecord(self._next_operation(), address, self.access_size))
        return records


def generate_trace(num_requests=1000, access_pattern="mixed", read_ratio=0.8, modify_ratio=0.0,
                   working_set_bytes=64 * 1024, access_size=8, random_seed=None):
    generator = WorkloadGenerator(
        working_set_bytes=working_set_bytes,
        access_size=access_size,
        access_pattern=access_pattern,
        read_ratio=read_ratio,
        modify_ratio=modify_ratio,
        random_seed=random_seed,
    )
    return generator.generate(num_requests)
