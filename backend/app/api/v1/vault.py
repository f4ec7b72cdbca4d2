"""
Vault Endpoints

Deposit, withdraw, rebalance and fee collection on the simulated vault.
"""
from fastapi import APIRouter, HTTPException

from app.api.errors import vault_http_error
from app.api.schemas import (
    CollectFeesRequest,
    ConfigUpdateRequest,
    DepositRequest,
    DepositResponse,
    RangeInfo,
    RebalanceRequest,
    RebalanceResponse,
    VaultStateResponse,
    WithdrawRequest,
    WithdrawResponse,
)
from app.core.simulation import get_simulation
from lp_vault.errors import VaultError
from lp_vault.vault import TickRange

router = APIRouter()


def _range(rng: TickRange) -> RangeInfo:
    return RangeInfo(tick_lower=rng.tick_lower, tick_upper=rng.tick_upper)


@router.get("/vault", response_model=VaultStateResponse)
async def vault_state():
    """
    Vault snapshot

    Ranges, liquidity, total and free balances, fee buckets and roles.
    """
    try:
        state = get_simulation().vault.state()
    except VaultError as e:
        raise vault_http_error(e)

    return VaultStateResponse(
        total_supply=state.total_supply,
        base_range=_range(state.base_range),
        limit_range=_range(state.limit_range),
        base_liquidity=state.base_liquidity,
        limit_liquidity=state.limit_liquidity,
        total_amount0=state.total_amount0,
        total_amount1=state.total_amount1,
        free_balance0=state.free_balance0,
        free_balance1=state.free_balance1,
        accrued_protocol_fees0=state.accrued_protocol_fees[0],
        accrued_protocol_fees1=state.accrued_protocol_fees[1],
        accrued_team_fees0=state.accrued_team_fees[0],
        accrued_team_fees1=state.accrued_team_fees[1],
        tick=state.tick,
        sqrt_price_x96=state.sqrt_price_x96,
        last_rebalance=state.last_rebalance,
        finalized=state.finalized,
        config_version=state.config_version,
        governance=state.roles.governance,
        keeper=state.roles.keeper,
        team=state.roles.team
    )


@router.get("/vault/config")
async def vault_config():
    """Current vault config"""
    return get_simulation().vault.config.model_dump(mode="json")


@router.post("/vault/config")
async def update_vault_config(request: ConfigUpdateRequest):
    """Replace config fields (governance only). Returns the new config"""
    try:
        config = get_simulation().vault.update_config(request.changes, sender=request.sender)
    except VaultError as e:
        raise vault_http_error(e)
    return config.model_dump(mode="json")


@router.post("/vault/deposit", response_model=DepositResponse)
async def deposit(request: DepositRequest):
    """
    Deposit tokens for shares

    The sender pays at most the desired amounts; the vault keeps its composition.
    """
    try:
        result = get_simulation().vault.deposit(
            request.amount0_desired,
            request.amount1_desired,
            request.amount0_min,
            request.amount1_min,
            request.to,
            sender=request.sender
        )
    except VaultError as e:
        raise vault_http_error(e)

    return DepositResponse(shares=result.shares, amount0=result.amount0, amount1=result.amount1)


@router.post("/vault/withdraw", response_model=WithdrawResponse)
async def withdraw(request: WithdrawRequest):
    """Burn shares for the pro-rata share of the vault"""
    try:
        result = get_simulation().vault.withdraw(
            request.shares,
            request.amount0_min,
            request.amount1_min,
            request.to,
            sender=request.sender
        )
    except VaultError as e:
        raise vault_http_error(e)

    return WithdrawResponse(amount0=result.amount0, amount1=result.amount1)


@router.post("/vault/rebalance", response_model=RebalanceResponse)
async def rebalance(request: RebalanceRequest):
    """
    Recenter base and limit ranges on the current price

    Flow:
    1. Check cooldown, keeper and TWAP deviation
    2. Withdraw both positions and split fees
    3. Optional swap of free balance
    4. Mint base range, then limit range from what is left
    """
    try:
        report = get_simulation().vault.rebalance(
            request.swap_amount,
            request.sqrt_price_limit_x96,
            sender=request.sender
        )
    except VaultError as e:
        raise vault_http_error(e)

    return RebalanceResponse(
        tick=report.tick,
        twap=report.twap,
        base_range=_range(report.base_range),
        limit_range=_range(report.limit_range),
        base_liquidity=report.base_liquidity,
        limit_liquidity=report.limit_liquidity,
        fees0=report.fees0,
        fees1=report.fees1
    )


@router.post("/vault/fees/{bucket}")
async def collect_fees(bucket: str, request: CollectFeesRequest):
    """Collect the protocol (governance) or team bucket"""
    vault = get_simulation().vault
    collectors = {
        "protocol": vault.collect_protocol,
        "team": vault.collect_team
    }
    if bucket not in collectors:
        raise HTTPException(status_code=404, detail=f"Unknown fee bucket: {bucket}")

    try:
        collectors[bucket](request.amount0, request.amount1, request.to, sender=request.sender)
    except VaultError as e:
        raise vault_http_error(e)

    return {
        "status": "success",
        "bucket": bucket,
        "amount0": request.amount0,
        "amount1": request.amount1
    }
