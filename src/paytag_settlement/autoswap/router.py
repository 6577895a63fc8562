"""Uniswap V3 SwapRouter02 calldata for native -> stable swaps."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal

from web3 import Web3

from paytag_settlement.models.config import ChainRouterConfig

# SwapRouter02 ABI subset: exactInputSingle (no deadline field in the
# struct on this router) and the deadline-checked multicall overload.
SWAP_ROUTER02_ABI = [
    {
        "inputs": [
            {
                "components": [
                    {"name": "tokenIn", "type": "address"},
                    {"name": "tokenOut", "type": "address"},
                    {"name": "fee", "type": "uint24"},
                    {"name": "recipient", "type": "address"},
                    {"name": "amountIn", "type": "uint256"},
                    {"name": "amountOutMinimum", "type": "uint256"},
                    {"name": "sqrtPriceLimitX96", "type": "uint160"},
                ],
                "name": "params",
                "type": "tuple",
            }
        ],
        "name": "exactInputSingle",
        "outputs": [{"name": "amountOut", "type": "uint256"}],
        "stateMutability": "payable",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "deadline", "type": "uint256"},
            {"name": "data", "type": "bytes[]"},
        ],
        "name": "multicall",
        "outputs": [{"name": "", "type": "bytes[]"}],
        "stateMutability": "payable",
        "type": "function",
    },
]

_w3 = Web3()


@dataclass
class SwapCall:
    """Encoded router call ready for the custodial executor."""

    router: str
    call_data: str  # 0x-prefixed hex
    value_wei: int
    amount_out_minimum: int  # target base units
    expected_out: str  # target human units, before slippage
    deadline: int


def quote_output(
    amount_wei: int, quote_price: str | Decimal, target_decimals: int = 6
) -> Decimal:
    """Placeholder quote: native amount times a fixed price, in target units."""
    native = Decimal(amount_wei) / Decimal(10**18)
    return (native * Decimal(quote_price)).quantize(
        Decimal(1).scaleb(-target_decimals), rounding=ROUND_DOWN
    )


def min_amount_out(
    expected: Decimal, slippage_bps: int, target_decimals: int = 6
) -> int:
    scaled = expected * Decimal(10000 - slippage_bps) / Decimal(10000)
    return int((scaled * (Decimal(10) ** target_decimals)).to_integral_value(rounding=ROUND_DOWN))


def build_swap_call(
    chain: ChainRouterConfig,
    recipient: str,
    amount_wei: int,
    slippage_bps: int,
    deadline: int,
    quote_price: str | Decimal,
) -> SwapCall:
    """Encode ``multicall(deadline, [exactInputSingle(WETH -> target)])``.

    The router wraps the attached native value, so ``value_wei`` equals
    ``amountIn``.
    """
    router = Web3.to_checksum_address(chain.router)
    contract = _w3.eth.contract(address=router, abi=SWAP_ROUTER02_ABI)

    expected = quote_output(amount_wei, quote_price, chain.target_decimals)
    minimum = min_amount_out(expected, slippage_bps, chain.target_decimals)

    params = (
        Web3.to_checksum_address(chain.wrapped_native),  # tokenIn
        Web3.to_checksum_address(chain.target_token),    # tokenOut
        chain.fee_tier,                                   # fee
        Web3.to_checksum_address(recipient),              # recipient
        amount_wei,                                       # amountIn
        minimum,                                          # amountOutMinimum
        0,                                                # sqrtPriceLimitX96 (no limit)
    )
    inner = contract.encode_abi("exactInputSingle", args=[params])
    call_data = contract.encode_abi(
        "multicall", args=[deadline, [Web3.to_bytes(hexstr=inner)]]
    )
    return SwapCall(
        router=router,
        call_data=call_data,
        value_wei=amount_wei,
        amount_out_minimum=minimum,
        expected_out=format(expected, "f"),
        deadline=deadline,
    )
