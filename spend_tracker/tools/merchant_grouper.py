"""Groups unmatched transactions so a recurring unbudgeted merchant is one line item"""

from typing import List, Tuple

from spend_tracker.models import Transaction
from .merchant_normalizer import normalize_merchant_name, are_similar_merchants


def group_transactions_by_merchant(transactions: List[Transaction]) -> List[List[Transaction]]:
    """
    Greedy single-pass clustering by normalized merchant name.

    Each transaction joins the first existing group (in creation order) whose
    representative name is similar to its own; otherwise it starts a new group
    keyed by its normalized name. First-fit, not best-fit: near the margins the
    result depends on input order.

    Args:
        transactions: Transactions in a fixed order

    Returns:
        Non-empty clusters in creation order; every input appears in exactly one
    """
    groups: List[Tuple[str, List[Transaction]]] = []

    for transaction in transactions:
        normalized_name = normalize_merchant_name(transaction.merchant_name)

        for representative, members in groups:
            if are_similar_merchants(normalized_name, representative):
                members.append(transaction)
                break
        else:
            groups.append((normalized_name, [transaction]))

    return [members for _, members in groups]
