"""
ALPHA INTEL — sBTC Looping Yield Model
Closed-form leveraged-looping yield on a lending market. Deterministic, no I/O.

Each loop re-deposits the amount borrowed against the previous deposit:

    deposits = 1, r, r^2, ..., r^(n-1)      (r = borrow ratio, n = loops)
    collateral_multiple = sum(deposits)
    effective_apy = base_apy * multiple - borrow_cost * (multiple - 1) * 100
    liquidation threshold = 100 / multiple  (% price drop)
"""
from alpha_intel.data.models import YieldData

BORROW_RATIO = 0.8
LOOP_ITERATIONS = 5
BORROW_COST_RATE = 0.02
DEFAULT_BASE_APY = 5.0


def collateral_multiple(borrow_ratio: float = BORROW_RATIO, iterations: int = LOOP_ITERATIONS) -> float:
    total = 0.0
    deposit = 1.0
    for _ in range(iterations):
        total += deposit
        deposit *= borrow_ratio
    return total


def calculate_yield(base_apy: float = DEFAULT_BASE_APY) -> YieldData:
    multiple = collateral_multiple()
    effective_apy = base_apy * multiple - BORROW_COST_RATE * (multiple - 1) * 100
    liquidation_threshold = 1 / multiple * 100

    return YieldData(
        effective_apy=round(effective_apy, 2),
        collateral_multiple=round(multiple, 2),
        liquidation_risk=f"{liquidation_threshold:.2f}% price-drop buffer",
        base_apy=base_apy,
    )
