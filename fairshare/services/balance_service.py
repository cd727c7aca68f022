"""
Balance service: normalizes settlement data and derives a user's net position.

The settlement service computes who owes whom; this module only reads its
two feeds (settlement pairs and a currency -> user -> net balance map),
brings their loosely shaped records into typed form and folds them into a
per-currency NetBalance for one user. Balances are preferred. Pairs are an
equally valid source for display, so falling back to them is not an error.
"""
import asyncio
import logging
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from fairshare.core.exceptions import BalanceUnavailableError, SettlementServiceError
from fairshare.schemas.settlement import (
    BalanceView,
    CounterpartyDebt,
    SettlementPair,
    UnrecognizedShape,
)
from fairshare.services.money import decimals_for, from_minor, to_decimal, to_minor

logger = logging.getLogger(__name__)

NetBalance = Dict[str, Decimal]
BalanceMap = Dict[str, Dict[int, Decimal]]

# Field names seen across settlement payload versions
FROM_KEYS = ("from_user_id", "from", "from_id", "debtor_id", "transfer_from")
TO_KEYS = ("to_user_id", "to", "to_id", "creditor_id", "transfer_to")
AMOUNT_KEYS = ("amount", "sum", "value")
CURRENCY_KEYS = ("currency", "currency_code", "ccy")
PAIR_ENVELOPE_KEYS = ("items", "pairs", "settlements", "debts")


def _first_present(raw: dict, keys) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def parse_user_id(value: Any) -> Optional[int]:
    """
    Numeric user id from an int, a numeric string, a user object carrying
    `id`/`user_id`, or a list whose first element is one of those.
    """
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if isinstance(value, dict):
        value = value.get("id", value.get("user_id"))
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def parse_amount(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return to_decimal(value)
    except ValueError:
        return None


def parse_currency_code(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        value = value.get("code")
    if isinstance(value, str) and value.strip():
        return value.strip().upper()
    return None


def normalize_pair(raw: Any) -> Union[SettlementPair, UnrecognizedShape]:
    """Canonical SettlementPair for one raw record, or the reason it was rejected."""
    if not isinstance(raw, dict):
        return UnrecognizedShape(reason="not_an_object", raw=raw)

    from_user_id = parse_user_id(_first_present(raw, FROM_KEYS))
    to_user_id = parse_user_id(_first_present(raw, TO_KEYS))
    if from_user_id is None or to_user_id is None:
        return UnrecognizedShape(reason="missing_user_id", raw=raw)
    if from_user_id == to_user_id:
        return UnrecognizedShape(reason="self_pair", raw=raw)

    amount = parse_amount(_first_present(raw, AMOUNT_KEYS))
    if amount is None:
        return UnrecognizedShape(reason="invalid_amount", raw=raw)
    if amount <= 0:
        return UnrecognizedShape(reason="non_positive_amount", raw=raw)

    currency = parse_currency_code(_first_present(raw, CURRENCY_KEYS))
    if currency is None:
        return UnrecognizedShape(reason="missing_currency", raw=raw)

    return SettlementPair(
        from_user_id=from_user_id,
        to_user_id=to_user_id,
        amount=amount,
        currency=currency
    )


def normalize_pairs(raw: Any) -> Union[List[SettlementPair], UnrecognizedShape]:
    """
    Normalize a settlement pairs payload.

    Accepts a bare list or an object wrapping the list under one of
    PAIR_ENVELOPE_KEYS. Records that cannot be read are dropped.
    """
    items = raw
    if isinstance(raw, dict):
        items = _first_present(raw, PAIR_ENVELOPE_KEYS)
    if not isinstance(items, list):
        return UnrecognizedShape(reason="pairs_not_a_list", raw=raw)

    pairs = []
    for item in items:
        result = normalize_pair(item)
        if isinstance(result, UnrecognizedShape):
            logger.debug(f"Dropping settlement pair ({result.reason}): {item!r}")
            continue
        pairs.append(result)
    return pairs


def normalize_balances(raw: Any) -> Union[BalanceMap, UnrecognizedShape]:
    """
    Normalize a currency -> user -> net balance map.

    The map may be wrapped under `balances`. Currency codes are upper-cased
    (codes differing only by case are merged), user ids become ints, and
    zero or unreadable entries are dropped. A non-empty map with no
    currency -> per-user entry at all is not a balance map.
    """
    if isinstance(raw, dict) and isinstance(raw.get("balances"), dict):
        raw = raw["balances"]
    if not isinstance(raw, dict):
        return UnrecognizedShape(reason="balances_not_a_mapping", raw=raw)

    balances: BalanceMap = {}
    recognized = False
    for code, per_user in raw.items():
        currency = parse_currency_code(code)
        if currency is None or not isinstance(per_user, dict):
            logger.debug(f"Dropping balance entry for currency {code!r}")
            continue
        if not per_user:
            recognized = True
        for raw_user_id, raw_amount in per_user.items():
            user_id = parse_user_id(raw_user_id)
            recognized = recognized or user_id is not None
            amount = parse_amount(raw_amount)
            if user_id is None or amount is None or amount == 0:
                continue
            users = balances.setdefault(currency, {})
            users[user_id] = users.get(user_id, Decimal(0)) + amount

    if raw and not recognized:
        return UnrecognizedShape(reason="balances_not_a_mapping", raw=raw)

    return {
        currency: {uid: amount for uid, amount in users.items() if amount != 0}
        for currency, users in balances.items()
        if any(amount != 0 for amount in users.values())
    }


def net_balance_from_balances(user_id: int, balances: BalanceMap) -> NetBalance:
    """User's net per currency, read from an authoritative balance map."""
    net: NetBalance = {}
    for currency in sorted(balances):
        amount = balances[currency].get(user_id)
        if amount is None:
            continue
        decimals = decimals_for(currency)
        amount_minor = to_minor(amount, decimals)
        if amount_minor != 0:
            net[currency] = from_minor(amount_minor, decimals)
    return net


def net_balance_from_pairs(user_id: int, pairs: List[SettlementPair]) -> NetBalance:
    """
    Fold settlement pairs into the user's net per currency.

    Pairs where the user is the creditor add, pairs where the user is the
    debtor subtract. Sums are taken in minor units.
    """
    totals: Dict[str, int] = {}
    for pair in pairs:
        if pair.to_user_id == user_id:
            sign = 1
        elif pair.from_user_id == user_id:
            sign = -1
        else:
            continue
        amount_minor = to_minor(pair.amount, decimals_for(pair.currency))
        totals[pair.currency] = totals.get(pair.currency, 0) + sign * amount_minor

    return {
        currency: from_minor(total, decimals_for(currency))
        for currency, total in sorted(totals.items())
        if total != 0
    }


def compute_net_balance(
    user_id: int,
    balances: Optional[BalanceMap] = None,
    pairs: Optional[List[SettlementPair]] = None
) -> Tuple[NetBalance, str]:
    """
    Net balance of `user_id` and the name of the feed it came from.

    None means a feed is unavailable.

    Raises:
        BalanceUnavailableError: If both feeds are unavailable.
    """
    if balances is not None:
        return net_balance_from_balances(user_id, balances), "balances"
    if pairs is not None:
        logger.info(f"Balances unavailable, deriving net balance of user {user_id} from pairs")
        return net_balance_from_pairs(user_id, pairs), "pairs"
    raise BalanceUnavailableError("Neither balances nor settlement pairs are available")


def debts_by_counterparty(user_id: int, pairs: List[SettlementPair]) -> List[CounterpartyDebt]:
    """
    The user's signed position against each other user, per currency.

    Positive amounts are owed to the user, negative amounts are owed by the
    user. Sorted by absolute amount, largest first.
    """
    totals: Dict[Tuple[int, str], int] = {}
    for pair in pairs:
        if pair.to_user_id == user_id:
            other, sign = pair.from_user_id, 1
        elif pair.from_user_id == user_id:
            other, sign = pair.to_user_id, -1
        else:
            continue
        key = (other, pair.currency)
        amount_minor = to_minor(pair.amount, decimals_for(pair.currency))
        totals[key] = totals.get(key, 0) + sign * amount_minor

    debts = [
        CounterpartyDebt(
            user_id=other,
            currency=currency,
            amount=from_minor(total, decimals_for(currency))
        )
        for (other, currency), total in totals.items()
        if total != 0
    ]
    debts.sort(key=lambda d: (-abs(d.amount), d.user_id, d.currency))
    return debts


def _normalize_feed(result: Any, normalize: Callable, label: str, group_id: int):
    if isinstance(result, SettlementServiceError):
        logger.warning(f"Could not load {label} for group {group_id}: {result}")
        return None
    if isinstance(result, BaseException):
        raise result
    normalized = normalize(result)
    if isinstance(normalized, UnrecognizedShape):
        logger.warning(f"Unrecognized {label} payload for group {group_id}: {normalized.reason}")
        return None
    return normalized


async def load_balance_view(client, group_id: int, user_id: int) -> BalanceView:
    """
    Fetch both settlement feeds concurrently and build the user's balance view.

    Raises:
        BalanceUnavailableError: If neither feed could be read.
    """
    raw_pairs, raw_balances = await asyncio.gather(
        client.fetch_pairs(group_id),
        client.fetch_balances(group_id),
        return_exceptions=True
    )
    pairs = _normalize_feed(raw_pairs, normalize_pairs, "settlement pairs", group_id)
    balances = _normalize_feed(raw_balances, normalize_balances, "balances", group_id)

    try:
        net, source = compute_net_balance(user_id, balances=balances, pairs=pairs)
    except BalanceUnavailableError:
        logger.error(f"No settlement data available for group {group_id}")
        raise

    pairs = pairs or []
    return BalanceView(
        group_id=group_id,
        user_id=user_id,
        source=source,
        net=net,
        pairs=pairs,
        debts=debts_by_counterparty(user_id, pairs)
    )
