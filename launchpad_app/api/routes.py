import asyncio
from dataclasses import asdict

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from launchpad_app.schemas import BuyInput, FeeUpdateInput, LaunchCreateInput, SellInput, SimulationInput
from launchpad_app.services.curve_table import compute_curve_table
from launchpad_app.services.factory import LaunchFactory
from launchpad_app.services.launch import Launch
from launchpad_app.services.simulation import run_launch_simulation


router = APIRouter()


def get_factory(request: Request) -> LaunchFactory:
    return request.app.state.factory


def get_launch(launch_id: int, factory: LaunchFactory = Depends(get_factory)) -> Launch:
    return factory.get_launch(launch_id)


@router.get("/health")
async def health():
    return {"status": "ok"}


# ── Factory ──

@router.get("/factory")
async def factory_info(factory: LaunchFactory = Depends(get_factory)):
    return factory.info()


@router.post("/factory/fees")
async def set_default_fees(data: FeeUpdateInput, request: Request, factory: LaunchFactory = Depends(get_factory)):
    owner = getattr(request.state, "owner", None)
    if owner is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    factory.set_default_fees(data.creator_fee_bps, data.platform_fee_bps, caller=owner)
    return factory.info()


# ── Launches ──

@router.post("/launches")
async def create_launch(data: LaunchCreateInput, factory: LaunchFactory = Depends(get_factory)):
    launch_id = factory.create_launch(
        name=data.name,
        symbol=data.symbol,
        total_supply=data.total_supply,
        initial_price=data.initial_price,
        price_increment=data.price_increment,
        graduation_threshold=data.graduation_threshold,
        enable_sell=data.enable_sell,
        creator=data.creator,
    )
    return factory.get_launch(launch_id).summary()


@router.get("/launches")
async def list_launches(factory: LaunchFactory = Depends(get_factory)):
    launches = factory.get_all_launches()
    return {
        "count": len(launches),
        "launches": [launch.summary() for launch in launches],
    }


@router.get("/launches/{launch_id}")
async def launch_detail(launch: Launch = Depends(get_launch)):
    return launch.summary()


@router.get("/launches/{launch_id}/quote/buy")
async def quote_buy(payment: int = Query(..., gt=0), launch: Launch = Depends(get_launch)):
    tokens_out, fee_amount = launch.get_tokens_for_payment(payment)
    return {
        "payment": payment,
        "tokens_out": tokens_out,
        "fee_amount": fee_amount,
        "net_payment": payment - fee_amount,
        "current_price": launch.get_current_price(),
    }


@router.get("/launches/{launch_id}/quote/sell")
async def quote_sell(amount: int = Query(..., gt=0), launch: Launch = Depends(get_launch)):
    gross, fee_amount = launch.get_payment_for_tokens(amount)
    return {
        "token_amount": amount,
        "gross_payment": gross,
        "fee_amount": fee_amount,
        "payment_out": gross - fee_amount,
        "current_price": launch.get_current_price(),
    }


@router.post("/launches/{launch_id}/buy")
async def buy(data: BuyInput, launch: Launch = Depends(get_launch)):
    result = launch.buy(data.min_tokens_out, data.payment, data.buyer)
    return {"trade": asdict(result), "launch": launch.summary()}


@router.post("/launches/{launch_id}/sell")
async def sell(data: SellInput, launch: Launch = Depends(get_launch)):
    result = launch.sell(data.token_amount, data.min_payment_out, data.seller)
    return {"trade": asdict(result), "launch": launch.summary()}


@router.get("/launches/{launch_id}/accounts/{account}")
async def account_balances(account: str, launch: Launch = Depends(get_launch)):
    return {
        "account": account,
        "token_balance": launch.token.balance_of(account),
        "curve_balance": launch.curve_balance_of(account),
        "payment_balance": launch.payments.balance_of(account),
    }


@router.get("/launches/{launch_id}/curve")
async def curve_table(points: int = Query(50, ge=2, le=500), launch: Launch = Depends(get_launch)):
    return compute_curve_table(launch.params, points)


# ── Simulation ──

@router.post("/simulate")
async def simulate(data: SimulationInput):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, run_launch_simulation, data)
