"""Built-in basic strategy table and Hi-Lo index plays."""

from decimal import Decimal

from bjsim.cards import Rank
from bjsim.rules import TableRules
from bjsim.strategy.actions import Action
from bjsim.strategy.counting import BetRampTier, Deviation

H = (Action.HIT,)
S = (Action.STAND,)
P = (Action.SPLIT,)
Dh = (Action.DOUBLE, Action.HIT)
Ds = (Action.DOUBLE, Action.STAND)
Rh = (Action.SURRENDER, Action.HIT)
Rs = (Action.SURRENDER, Action.STAND)

# Dealer upcards as used in keys, 2-10 then A (11 in the tables below).
DEALER_UPCARDS = range(2, 12)


def _dealer_label(upcard: int) -> str:
    return "A" if upcard == 11 else str(upcard)


def _hard_table(rules: TableRules) -> dict[tuple[int, int], tuple[Action, ...]]:
    table: dict[tuple[int, int], tuple[Action, ...]] = {}

    # Hard 4-8: Always hit
    for total in range(4, 9):
        for dealer in DEALER_UPCARDS:
            table[(total, dealer)] = H

    # Hard 9
    for dealer in [2, 7, 8, 9, 10, 11]:
        table[(9, dealer)] = H
    for dealer in [3, 4, 5, 6]:
        table[(9, dealer)] = Dh

    # Hard 10
    for dealer in [10, 11]:
        table[(10, dealer)] = H
    for dealer in range(2, 10):
        table[(10, dealer)] = Dh

    # Hard 11
    for dealer in DEALER_UPCARDS:
        table[(11, dealer)] = Dh

    # Hard 12
    for dealer in DEALER_UPCARDS:
        table[(12, dealer)] = S if dealer in (4, 5, 6) else H

    # Hard 13-16
    for total in range(13, 17):
        for dealer in range(2, 7):
            table[(total, dealer)] = S
        for dealer in range(7, 12):
            table[(total, dealer)] = H

    if rules.allow_surrender:
        table[(15, 10)] = Rh
        table[(16, 9)] = Rh
        table[(16, 10)] = Rh
        table[(16, 11)] = Rh
        if rules.hit_on_soft_17:
            table[(15, 11)] = Rh
            table[(17, 11)] = Rs

    # Hard 17+: Always stand, apart from the H17 surrender above
    for total in range(17, 22):
        for dealer in DEALER_UPCARDS:
            table.setdefault((total, dealer), S)

    return table


def _soft_table(rules: TableRules) -> dict[tuple[int, int], tuple[Action, ...]]:
    table: dict[tuple[int, int], tuple[Action, ...]] = {}

    # Soft 13-14 (A,2 / A,3)
    for total in (13, 14):
        for dealer in DEALER_UPCARDS:
            table[(total, dealer)] = Dh if dealer in (5, 6) else H

    # Soft 15-16 (A,4 / A,5)
    for total in (15, 16):
        for dealer in DEALER_UPCARDS:
            table[(total, dealer)] = Dh if dealer in (4, 5, 6) else H

    # Soft 17 (A,6)
    for dealer in DEALER_UPCARDS:
        table[(17, dealer)] = Dh if dealer in (3, 4, 5, 6) else H

    # Soft 18 (A,7)
    for dealer in DEALER_UPCARDS:
        if dealer in (2, 3, 4, 5, 6):
            table[(18, dealer)] = Ds
        elif dealer in (7, 8):
            table[(18, dealer)] = S
        else:
            table[(18, dealer)] = H

    # Soft 19 (A,8)
    for dealer in DEALER_UPCARDS:
        table[(19, dealer)] = S
    if rules.hit_on_soft_17:
        table[(19, 6)] = Ds

    # Soft 20-21: Always stand
    for total in (20, 21):
        for dealer in DEALER_UPCARDS:
            table[(total, dealer)] = S

    return table


def _pair_splits(rules: TableRules) -> dict[tuple[int, int], bool]:
    """Whether to split a pair, keyed by (card value, dealer upcard)."""
    das = rules.allow_double_after_split
    splits: dict[tuple[int, int], bool] = {}
    for dealer in DEALER_UPCARDS:
        splits[(2, dealer)] = dealer in (4, 5, 6, 7) or (das and dealer in (2, 3))
        splits[(3, dealer)] = dealer in (4, 5, 6, 7) or (das and dealer in (2, 3))
        splits[(4, dealer)] = das and dealer in (5, 6)
        splits[(5, dealer)] = False
        splits[(6, dealer)] = dealer in (3, 4, 5, 6) or (das and dealer == 2)
        splits[(7, dealer)] = dealer <= 7
        splits[(8, dealer)] = True
        splits[(9, dealer)] = dealer not in (7, 10, 11)
        splits[(10, dealer)] = False
        splits[(11, dealer)] = True
    return splits


def basic_strategy_actions(rules: TableRules | None = None) -> dict[str, list[Action]]:
    """
    Build a basic strategy decision table for the given rules.

    Pair entries list the split first, followed by the play for the pair's
    total so the hand still has an answer when the split is refused.
    """
    rules = rules or TableRules()
    hard = _hard_table(rules)
    soft = _soft_table(rules)
    splits = _pair_splits(rules)
    table: dict[str, list[Action]] = {}

    for (total, dealer), actions in hard.items():
        table[f"hard_{total}_vs_{_dealer_label(dealer)}"] = list(actions)

    for (total, dealer), actions in soft.items():
        table[f"soft_{total}_vs_{_dealer_label(dealer)}"] = list(actions)

    for rank in Rank:
        card_value = rank.blackjack_value
        for dealer in DEALER_UPCARDS:
            if rank.is_ace:
                unsplit = H  # A,A plays as soft 12
            else:
                unsplit = hard[(card_value * 2, dealer)]
            actions = list(unsplit)
            if splits[(card_value, dealer)]:
                actions = [Action.SPLIT] + [a for a in actions if a != Action.SURRENDER]
            table[f"pair_{rank}_vs_{_dealer_label(dealer)}"] = actions

    return table


def _ten_pairs(dealer: str, threshold: float) -> dict[str, Deviation]:
    return {
        f"pair_{rank}_vs_{dealer}": Deviation(threshold, Action.SPLIT)
        for rank in ("10", "J", "Q", "K")
    }


# The positive-index Illustrious 18 plays and the Fab 4 surrenders, Hi-Lo.
# Insurance at +3 is built into CountingStrategy.
ILLUSTRIOUS_18: dict[str, Deviation] = {
    "hard_16_vs_10": Deviation(0, Action.STAND),
    "hard_15_vs_10": Deviation(4, Action.STAND),
    **_ten_pairs("5", 5),
    **_ten_pairs("6", 4),
    "hard_10_vs_10": Deviation(4, Action.DOUBLE),
    "hard_12_vs_3": Deviation(2, Action.STAND),
    "hard_12_vs_2": Deviation(3, Action.STAND),
    "hard_11_vs_A": Deviation(1, Action.DOUBLE),
    "hard_9_vs_2": Deviation(1, Action.DOUBLE),
    "hard_10_vs_A": Deviation(4, Action.DOUBLE),
    "hard_9_vs_7": Deviation(3, Action.DOUBLE),
    "hard_16_vs_9": Deviation(5, Action.STAND),
}

FAB_4: dict[str, Deviation] = {
    "hard_14_vs_10": Deviation(3, Action.SURRENDER),
    "hard_15_vs_9": Deviation(2, Action.SURRENDER),
    "hard_15_vs_A": Deviation(1, Action.SURRENDER),
    "hard_14_vs_A": Deviation(3, Action.SURRENDER),
}

DEFAULT_BET_RAMP: list[BetRampTier] = [
    BetRampTier(min_true_count=2, multiplier=Decimal("2")),
    BetRampTier(min_true_count=3, multiplier=Decimal("4")),
    BetRampTier(min_true_count=4, multiplier=Decimal("8")),
]


def hilo_deviations(include_surrender: bool = True) -> dict[str, Deviation]:
    """Return the built-in index plays."""
    plays = dict(ILLUSTRIOUS_18)
    if include_surrender:
        plays.update(FAB_4)
    return plays
