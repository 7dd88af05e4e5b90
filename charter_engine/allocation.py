# Vehicle allocation heuristics:
# - VehicleAllocator.get_recommendations: ranks single-vehicle "exact matches" and two-type combinations
#   that can carry a passenger count, penalizing oversized options.
# - suggest_additional_vehicles: smallest vehicles that cover a capacity shortfall.

from __future__ import annotations
import logging
from typing import List, Optional, Sequence, Tuple

from .config import AllocationPolicy, DEFAULT_POLICY
from .errors import InvalidInput
from .models import AllocationLine, AllocationOption, Vehicle

logger = logging.getLogger(__name__)

Combination = List[Tuple[Vehicle, int]]


def _check_passenger_count(passenger_count) -> int:
    if isinstance(passenger_count, bool) or not isinstance(passenger_count, int):
        raise InvalidInput(f"passenger_count must be an integer (got {passenger_count!r})")
    if passenger_count <= 0:
        raise InvalidInput(f"passenger_count must be positive (got {passenger_count})")
    return passenger_count


def dedupe_fleet(fleet: Sequence[Vehicle]) -> List[Vehicle]:
    """Collapse vehicles whose trimmed, case-insensitive names collide; the first occurrence wins."""
    seen = set()
    unique: List[Vehicle] = []
    for v in fleet:
        key = v.name_key
        if key in seen:
            continue
        seen.add(key)
        unique.append(v)
    return unique


def _option(lines: Combination, exact: bool) -> AllocationOption:
    return AllocationOption(
        lines=[AllocationLine(vehicle=v, quantity=q) for v, q in lines],
        total_capacity=sum(v.capacity * q for v, q in lines),
        estimated_price=sum(v.base_fare * q for v, q in lines),
        is_exact_match=exact,
    )


def _signature(lines: Combination) -> str:
    return ",".join(sorted(f"{v.id}:{q}" for v, q in lines))


class VehicleAllocator:
    def __init__(self, policy: Optional[AllocationPolicy] = None):
        self.policy = policy or DEFAULT_POLICY

    def score(self, total_capacity: int, passenger_count: int) -> float:
        mismatch = abs(total_capacity - passenger_count)
        waste = max(0.0, (total_capacity - passenger_count) / passenger_count)
        return mismatch + waste * passenger_count * self.policy.waste_penalty

    def find_exact_matches(self, passenger_count: int, fleet: Sequence[Vehicle]) -> List[Vehicle]:
        ceiling = passenger_count * self.policy.exact_match_ceiling    # no 50-seat coach for 4 people
        return [v for v in fleet if passenger_count <= v.capacity <= ceiling]

    def find_combinations(self, passenger_count: int, fleet: Sequence[Vehicle]) -> List[Combination]:
        ceiling = passenger_count * self.policy.combination_ceiling
        max_q = self.policy.max_quantity_per_vehicle

        # Building blocks only: anything seating n or more is an exact-match candidate instead
        blocks = sorted((v for v in fleet if 0 < v.capacity < passenger_count),
                        key=lambda v: v.capacity, reverse=True)

        found: List[Combination] = []
        seen = set()
        for i in range(len(blocks)):
            for j in range(i, len(blocks)):                 # unordered pairs, a vehicle may pair with itself
                v1, v2 = blocks[i], blocks[j]
                for q1 in range(1, max_q + 1):
                    for q2 in range(1, max_q + 1):
                        total = v1.capacity * q1 + v2.capacity * q2
                        if not (passenger_count <= total <= ceiling):
                            continue
                        if i == j:
                            combo: Combination = [(v1, q1 + q2)]    # same vehicle: merge into one line
                        else:
                            combo = [(v1, q1), (v2, q2)]
                        sig = _signature(combo)
                        if sig in seen:
                            continue
                        seen.add(sig)
                        found.append(combo)

        found.sort(key=lambda c: abs(sum(v.capacity * q for v, q in c) - passenger_count))
        return found[: self.policy.max_combinations]

    def get_recommendations(self, passenger_count: int, fleet: Sequence[Vehicle]) -> List[AllocationOption]:
        n = _check_passenger_count(passenger_count)
        unique = dedupe_fleet(fleet)
        if not unique:
            return []

        options = [_option([(v, 1)], exact=True) for v in self.find_exact_matches(n, unique)]
        options += [_option(c, exact=False) for c in self.find_combinations(n, unique)]

        # Exact matches first, then lowest score
        options.sort(key=lambda o: (not o.is_exact_match, self.score(o.total_capacity, n)))
        top = options[: self.policy.max_recommendations]
        logger.debug("recommendations for %d passengers: %d of %d options", n, len(top), len(options))
        return top


def get_recommendations(passenger_count: int, fleet: Sequence[Vehicle],
                        policy: Optional[AllocationPolicy] = None) -> List[AllocationOption]:
    return VehicleAllocator(policy).get_recommendations(passenger_count, fleet)


def allocation_capacity(lines: Sequence[AllocationLine]) -> int:
    return sum(ln.capacity for ln in lines)


def suggest_additional_vehicles(shortfall: int, fleet: Sequence[Vehicle], limit: int = 3) -> List[Vehicle]:
    """Smallest available vehicles that alone cover `shortfall` seats, ascending by capacity.

    When no single vehicle is large enough, the largest available ones are returned so the
    caller can combine them.
    """
    if shortfall <= 0:
        return []
    available = [v for v in dedupe_fleet(fleet) if v.is_available]
    covering = sorted((v for v in available if v.capacity >= shortfall), key=lambda v: v.capacity)
    if covering:
        return covering[:limit]
    largest = sorted(available, key=lambda v: v.capacity, reverse=True)[:limit]
    return sorted(largest, key=lambda v: v.capacity)
