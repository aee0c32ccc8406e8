"""Round state enumeration."""

from enum import Enum, auto


class RoundState(Enum):
    """
    Round state machine states.

    Flow: IDLE → RESET_ROUND → BETTING → DEALING → SIDEBETS → INSURANCE →
    PEEK → PLAYER_ACTIONS → DEALER_PLAY → SETTLEMENT → CLEANUP → IDLE
    """

    # Between rounds
    IDLE = auto()

    # Dealer hand cleared, balances snapshotted
    RESET_ROUND = auto()

    # Boxes sized, clamped and debited
    BETTING = auto()

    # Two cards per box, one or two for the dealer
    DEALING = auto()

    # Perfect Pairs and 21+3 classified
    SIDEBETS = auto()

    # Insurance offered against an ace
    INSURANCE = auto()

    # Dealer checks a hole card for blackjack
    PEEK = auto()

    # Boxes play their hands left to right
    PLAYER_ACTIONS = auto()

    # Dealer draws out
    DEALER_PLAY = auto()

    # Hands paid, players checked for bust/retirement
    SETTLEMENT = auto()

    # Records emitted, boxes reset or vacated
    CLEANUP = auto()

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()


# Trigger table for the round machine
ROUND_TRANSITIONS: list[dict] = [
    {"trigger": "start_round", "source": "idle", "dest": "reset_round"},
    {"trigger": "open_betting", "source": "reset_round", "dest": "betting"},
    {"trigger": "start_dealing", "source": "betting", "dest": "dealing"},
    {"trigger": "open_sidebets", "source": "dealing", "dest": "sidebets"},
    {"trigger": "open_insurance", "source": "sidebets", "dest": "insurance"},
    {"trigger": "start_peek", "source": "insurance", "dest": "peek"},
    {"trigger": "start_player_actions", "source": "peek", "dest": "player_actions"},
    {"trigger": "start_dealer_play", "source": "player_actions", "dest": "dealer_play"},
    # A dealer blackjack jumps straight to settlement
    {"trigger": "dealer_blackjack", "source": ["peek", "dealer_play"], "dest": "settlement"},
    {"trigger": "start_settlement", "source": "dealer_play", "dest": "settlement"},
    {"trigger": "start_cleanup", "source": "settlement", "dest": "cleanup"},
    {"trigger": "end_round", "source": "cleanup", "dest": "idle"},
]


def _transition_map(transitions: list[dict]) -> dict[RoundState, list[RoundState]]:
    valid: dict[RoundState, list[RoundState]] = {state: [] for state in RoundState}
    for transition in transitions:
        sources = transition["source"]
        if isinstance(sources, str):
            sources = [sources]
        dest = RoundState[transition["dest"].upper()]
        for source in sources:
            targets = valid[RoundState[source.upper()]]
            if dest not in targets:
                targets.append(dest)
    return valid


# Valid state transitions
VALID_TRANSITIONS: dict[RoundState, list[RoundState]] = _transition_map(ROUND_TRANSITIONS)


def is_valid_transition(from_state: RoundState, to_state: RoundState) -> bool:
    """
    Check if a state transition is valid.

    Args:
        from_state: Current state
        to_state: Desired state

    Returns:
        True if the transition is allowed
    """
    return to_state in VALID_TRANSITIONS.get(from_state, [])
