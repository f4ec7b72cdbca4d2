"""
Simulation Endpoints

Faucet, clock and external trades against the simulated pool.
"""
from fastapi import APIRouter

from app.api.errors import vault_http_error
from app.api.schemas import (
    AdvanceRequest,
    AdvanceResponse,
    BalancesResponse,
    FaucetRequest,
    SimulationStatusResponse,
    SwapRequest,
    SwapResponse,
)
from app.core.simulation import get_simulation, reset_simulation
from lp_vault.errors import VaultError

router = APIRouter()


@router.get("/sim/status", response_model=SimulationStatusResponse)
async def simulation_status():
    """Clock, pool price and config version of the running simulation"""
    env = get_simulation()
    return SimulationStatusResponse(
        timestamp=env.clock(),
        tick=env.pool.tick,
        pool_liquidity=env.pool.liquidity,
        config_version=env.vault.config.version,
        status="finalized" if env.vault.finalized else "running"
    )


@router.post("/sim/reset", response_model=SimulationStatusResponse)
async def reset():
    """Start a fresh simulation from the vault config"""
    reset_simulation()
    return await simulation_status()


@router.get("/sim/balances/{holder}", response_model=BalancesResponse)
async def balances(holder: str):
    env = get_simulation()
    return BalancesResponse(
        holder=holder,
        token0=env.token0.balance_of(holder),
        token1=env.token1.balance_of(holder),
        shares=env.shares.balance_of(holder)
    )


@router.post("/sim/faucet", response_model=BalancesResponse)
async def faucet(request: FaucetRequest):
    """Mint test tokens"""
    get_simulation().faucet(request.holder, request.amount0, request.amount1)
    return await balances(request.holder)


@router.post("/sim/advance", response_model=AdvanceResponse)
async def advance(request: AdvanceRequest):
    """Move the simulated clock forward"""
    return AdvanceResponse(timestamp=get_simulation().advance(request.seconds))


@router.post("/sim/swap", response_model=SwapResponse)
async def swap(request: SwapRequest):
    """Exact-input swap paid from the trader's balance"""
    env = get_simulation()
    try:
        amount0, amount1 = env.swap(
            request.trader,
            request.zero_for_one,
            request.amount_in,
            request.sqrt_price_limit_x96
        )
    except VaultError as e:
        raise vault_http_error(e)

    return SwapResponse(
        amount0=amount0,
        amount1=amount1,
        tick=env.pool.tick,
        sqrt_price_x96=env.pool.sqrt_price_x96
    )
