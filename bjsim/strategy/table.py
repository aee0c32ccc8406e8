"""Static table-driven strategy."""

from typing import Mapping, Sequence

from bjsim.cards import Card
from bjsim.hand import Hand
from bjsim.strategy.actions import Action, Decision, lookup_key
from bjsim.strategy.base import Strategy


class TableStrategy(Strategy):
    """
    Looks actions up in a decision table.

    Keys missing from the table answer with the single fallback action and
    mark the decision as a fallback.
    """

    def __init__(
        self,
        name: str,
        actions: Mapping[str, Sequence[Action]],
        fallback: Action,
        accept_insurance: bool = False,
    ) -> None:
        super().__init__(name)
        self._actions = {key: tuple(values) for key, values in actions.items() if values}
        self.fallback = fallback
        self.accept_insurance = accept_insurance

    def get_action(self, hand: Hand, dealer_upcard: Card) -> Decision:
        key = lookup_key(hand, dealer_upcard)
        return self.lookup(key)

    def lookup(self, key: str) -> Decision:
        """Answer for an already derived key."""
        actions = self._actions.get(key)
        if actions:
            return Decision(actions=actions, key=key)
        return Decision(actions=(self.fallback,), key=key, is_fallback=True)

    def decide_insurance(self) -> bool:
        return self.accept_insurance

    @property
    def table(self) -> Mapping[str, tuple[Action, ...]]:
        """Return the decision table."""
        return self._actions
