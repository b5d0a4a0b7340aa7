"""
Poloniex Mapping Constants

Static lookup tables for the positional (numeric channel) feed:
- currency pair ids, which double as book channel ids
- currency ids used by balance and margin updates
- single character / 0-1 flags resolved into enums

Threading: All constants are immutable after import
"""

from typing import Dict, Optional

from poloniex_stream.exchanges.poloniex.structs import BookSide, OrderUpdateType, Side, Wallet


class PoloniexMappings:
    """Static mapping constants for the Poloniex stream feed."""

    # Channel id with a fixed meaning
    TICKER_CHANNEL = 1002

    # Currency pair id -> pair code (book channel ids)
    CURRENCY_PAIRS: Dict[int, str] = {
        7: "BTC_BCN",
        14: "BTC_BTS",
        15: "BTC_BURST",
        20: "BTC_CLAM",
        24: "BTC_DASH",
        25: "BTC_DGB",
        27: "BTC_DOGE",
        38: "BTC_GAME",
        43: "BTC_HUC",
        50: "BTC_LTC",
        51: "BTC_MAID",
        58: "BTC_OMNI",
        61: "BTC_NAV",
        63: "BTC_NMC",
        64: "BTC_NXT",
        69: "BTC_PPC",
        73: "BTC_STR",
        74: "BTC_SYS",
        89: "BTC_VIA",
        92: "BTC_VTC",
        97: "BTC_XCP",
        98: "BTC_XEM",
        99: "BTC_XMR",
        100: "BTC_XPM",
        112: "BTC_XRP",
        114: "XMR_BCN",
        116: "XMR_DASH",
        121: "USDT_BTC",
        122: "USDT_DASH",
        123: "USDT_LTC",
        124: "USDT_NXT",
        125: "USDT_STR",
        126: "USDT_XMR",
        127: "USDT_XRP",
        129: "XMR_LTC",
        130: "XMR_MAID",
        131: "XMR_NXT",
        148: "BTC_ETH",
        149: "USDT_ETH",
        150: "BTC_SC",
        155: "BTC_FCT",
        162: "BTC_DCR",
        163: "BTC_LSK",
        166: "ETH_LSK",
        167: "BTC_LBC",
        168: "BTC_STEEM",
        169: "ETH_STEEM",
        170: "BTC_SBD",
        171: "BTC_ETC",
        172: "ETH_ETC",
        173: "USDT_ETC",
        174: "BTC_REP",
        175: "USDT_REP",
        176: "ETH_REP",
        177: "BTC_ARDR",
        178: "BTC_ZEC",
        179: "ETH_ZEC",
        180: "USDT_ZEC",
        181: "XMR_ZEC",
        182: "BTC_STRAT",
        184: "BTC_PASC",
        185: "BTC_GNT",
        186: "ETH_GNT",
        189: "BTC_BCH",
        190: "ETH_BCH",
        191: "USDT_BCH",
        192: "BTC_ZRX",
        193: "ETH_ZRX",
        194: "BTC_CVC",
        195: "ETH_CVC",
        196: "BTC_OMG",
        197: "ETH_OMG",
        198: "BTC_GAS",
        199: "ETH_GAS",
        200: "BTC_STORJ",
        201: "BTC_EOS",
        202: "ETH_EOS",
        203: "USDT_EOS",
        204: "BTC_SNT",
        205: "ETH_SNT",
        206: "USDT_SNT",
        207: "BTC_KNC",
        208: "ETH_KNC",
        209: "USDT_KNC",
        210: "BTC_BAT",
        211: "ETH_BAT",
        212: "USDT_BAT",
        213: "BTC_LOOM",
        214: "ETH_LOOM",
        215: "USDT_LOOM",
        216: "USDT_DOGE",
        217: "USDT_GNT",
        218: "USDT_LSK",
        219: "USDT_SC",
        220: "USDT_ZRX",
        221: "BTC_QTUM",
        222: "ETH_QTUM",
        223: "USDT_QTUM",
        224: "USDC_BTC",
        225: "USDC_ETH",
        226: "USDC_USDT",
    }

    # Currency id -> currency code
    CURRENCIES: Dict[int, str] = {
        28: "BTC",
        60: "DASH",
        77: "DOGE",
        125: "LTC",
        171: "SC",
        214: "USDT",
        243: "XRP",
        267: "ETH",
        298: "EOS",
        299: "USDC",
    }

    # Flag mappings
    PUBLIC_TRADE_SIDE = {1: Side.BUY, 0: Side.SELL}
    BOOK_UPDATE_SIDE = {1: BookSide.BID, 0: BookSide.ASK}
    WALLET = {"e": Wallet.EXCHANGE, "m": Wallet.MARGIN}
    ORDER_UPDATE_TYPE = {"f": OrderUpdateType.FILLED, "c": OrderUpdateType.CANCELED}


def currency_pair(pair_id) -> Optional[str]:
    """Pair code for a numeric pair / channel id, None when unknown."""
    return PoloniexMappings.CURRENCY_PAIRS.get(pair_id)


def currency(currency_id) -> Optional[str]:
    """Currency code for a numeric currency id, None when unknown."""
    return PoloniexMappings.CURRENCIES.get(currency_id)


def order_side(flag) -> Side:
    """Pending / new order type flag: "0" is sell, anything else is buy."""
    return Side.SELL if flag == "0" else Side.BUY


def public_trade_side(flag) -> Side:
    return PoloniexMappings.PUBLIC_TRADE_SIDE.get(flag, Side.SELL)


def book_update_side(flag) -> BookSide:
    return PoloniexMappings.BOOK_UPDATE_SIDE.get(flag, BookSide.ASK)


def wallet(flag) -> Wallet:
    return PoloniexMappings.WALLET.get(flag, Wallet.LENDING)


def order_update_type(flag) -> OrderUpdateType:
    return PoloniexMappings.ORDER_UPDATE_TYPE.get(flag, OrderUpdateType.SELF_TRADE)
