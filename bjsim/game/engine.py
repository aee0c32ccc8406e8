"""Round engine: one blackjack round from bets to settlement, as a state machine."""

import logging
from decimal import Decimal
from typing import Sequence

from transitions import Machine

from bjsim.game.events import EventEmitter, EventType
from bjsim.game.records import build_hand_records
from bjsim.game.state import ROUND_TRANSITIONS, RoundState
from bjsim.game.table import Box, Dealer, Player
from bjsim.hand import Hand, HandResult, payout_for, settle_hand
from bjsim.rules import TableRules
from bjsim.shoe import Shoe
from bjsim.sidebets import perfect_pairs, twenty_one_plus_three
from bjsim.strategy import Action, CountingStrategy, Decision

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Decision keys recorded when a dealer blackjack ends the round.
NO_DECISION = "No Decision"


class RoundEngine:
    """
    Plays rounds for a fixed table of boxes against one dealer and one shoe.

    The engine owns the shoe and mutates it, the dealer, every box and every
    player in place. Counting strategies are bound to the same shoe so they
    see the count as each card leaves it.
    """

    # State machine states
    STATES = [s.name.lower() for s in RoundState]

    # State machine transitions
    TRANSITIONS = ROUND_TRANSITIONS

    def __init__(
        self,
        rules: TableRules,
        shoe: Shoe,
        boxes: Sequence[Box],
        players: Sequence[Player],
        events: EventEmitter | None = None,
    ) -> None:
        """
        Set up the table.

        Args:
            rules: Table rules
            shoe: The shoe every card is dealt from
            boxes: Boxes in seat order, left to right
            players: Every player owning at least one of the boxes
            events: Event emitter receiving settled hands and status changes
        """
        self.rules = rules
        self.shoe = shoe
        self.boxes = sorted(boxes, key=lambda box: box.index)
        self.players = list(players)
        self.dealer = Dealer()
        self.events = events or EventEmitter()
        self.round_number = 0
        self.shoe_number = 1

        for player in self.players:
            if isinstance(player.strategy, CountingStrategy):
                player.strategy.bind(shoe)

        self.machine = Machine(
            model=self,
            states=self.STATES,
            transitions=self.TRANSITIONS,
            initial="idle",
            auto_transitions=False,
            model_attribute="_machine_state",
        )

    @property
    def state(self) -> RoundState:
        """Get current round state as enum."""
        return RoundState[self._machine_state.upper()]  # type: ignore

    @property
    def has_active_players(self) -> bool:
        return any(player.is_active for player in self.players)

    def _boxes_in_play(self) -> list[Box]:
        return [box for box in self.boxes if box.in_play]

    def play_round(self, round_number: int) -> None:
        """Play one complete round."""
        self.round_number = round_number

        self.start_round()
        self._reset_round()

        self.open_betting()
        self._collect_bets()

        self.start_dealing()
        self._deal_initial_cards()

        self.open_sidebets()
        self._evaluate_sidebets()

        self.open_insurance()
        self._offer_insurance()

        self.start_peek()
        if self._peek():
            self.dealer_blackjack()
        else:
            self.start_player_actions()
            self._play_boxes()

            self.start_dealer_play()
            if self._play_dealer():
                self.dealer_blackjack()
            else:
                self.start_settlement()

        self._settle()

        self.start_cleanup()
        self._clean_up()
        self.end_round()

    # -- reset and betting -------------------------------------------------

    def _reset_round(self) -> None:
        self.shoe.reset_round_counter()
        self.dealer.reset()
        for player in self.players:
            if player.is_active:
                player.start_round()
        logger.debug(
            "Round %d, shoe %d: running count %d, true count %.2f, %d cards left",
            self.round_number,
            self.shoe_number,
            self.shoe.running_count,
            self.shoe.true_count,
            self.shoe.cards_remaining,
        )
        self.events.emit_new(
            EventType.ROUND_STARTED,
            round_number=self.round_number,
            shoe_number=self.shoe_number,
        )

    def _collect_bets(self) -> None:
        for box in self.boxes:
            if not box.is_active:
                continue
            player = box.player
            box.reset()

            box.recommended_bet = player.strategy.bet_size_for(box.original_main_bet)
            box.main_bet = self.rules.clamp_main_bet(box.recommended_bet)
            box.perfect_pair_bet = self.rules.clamp_side_bet(box.original_perfect_pair_bet)
            box.p21_bet = self.rules.clamp_side_bet(box.original_p21_bet)

            if not self._place_box_bets(box):
                logger.debug(
                    "Box %s sits out round %d: balance %s",
                    box.box_id,
                    self.round_number,
                    player.balance,
                )
                self.events.emit_new(EventType.BOX_SAT_OUT, box_id=box.box_id)
                continue

            box.open_hand()
            self.events.emit_new(
                EventType.BETS_PLACED,
                box_id=box.box_id,
                main_bet=box.main_bet,
                perfect_pair_bet=box.perfect_pair_bet,
                p21_bet=box.p21_bet,
            )

    def _place_box_bets(self, box: Box) -> bool:
        """
        Commit the richest affordable bet combination for a box.

        Tries main + both side bets, main + 21+3, main + Perfect Pairs and
        main alone, first at the box's main bet and then at the table
        minimum.

        Returns:
            False if nothing is affordable; the box then sits out the round
        """
        player = box.player
        pp, p21 = box.perfect_pair_bet, box.p21_bet
        combinations = [(pp, p21), (ZERO, p21), (pp, ZERO), (ZERO, ZERO)]

        for main in (box.main_bet, self.rules.min_bet):
            for pp_bet, p21_bet in combinations:
                if not player.can_afford(main + pp_bet + p21_bet):
                    continue
                player.place_bet(main)
                player.place_bet(pp_bet)
                player.place_bet(p21_bet)
                box.main_bet = main
                box.perfect_pair_bet = pp_bet
                box.p21_bet = p21_bet
                return True

        box.main_bet = ZERO
        box.perfect_pair_bet = ZERO
        box.p21_bet = ZERO
        return False

    # -- dealing -----------------------------------------------------------

    def _deal_initial_cards(self) -> None:
        boxes = self._boxes_in_play()

        for box in boxes:
            box.hands[0].add_card(self.shoe.deal())
        self.dealer.hand.add_card(self.shoe.deal())

        for box in boxes:
            box.hands[0].add_card(self.shoe.deal())
        if self.rules.dealer_takes_hole_card:
            self.dealer.hand.add_card(self.shoe.deal())

    def _evaluate_sidebets(self) -> None:
        upcard = self.dealer.upcard
        for box in self._boxes_in_play():
            first, second = box.hands[0].cards[:2]

            if box.perfect_pair_bet > 0:
                outcome = perfect_pairs(first, second)
                box.perfect_pair_win = outcome.payout(box.perfect_pair_bet)
                box.perfect_pair_type = outcome.label

            if box.p21_bet > 0:
                outcome = twenty_one_plus_three([first, second, upcard])
                box.p21_win = outcome.payout(box.p21_bet)
                box.p21_type = outcome.label

    # -- insurance and peek ------------------------------------------------

    def _offer_insurance(self) -> None:
        if not self.dealer.upcard.is_ace:
            return
        for box in self._boxes_in_play():
            player = box.player
            if not player.strategy.decide_insurance():
                continue
            amount = box.main_bet / 2
            if player.place_bet(amount):
                box.insurance_taken = True
                box.insurance_bet = amount
                self.events.emit_new(EventType.INSURANCE_TAKEN, box_id=box.box_id, amount=amount)

    def _peek(self) -> bool:
        """
        Check a hole card for blackjack.

        Returns:
            True if the dealer has blackjack and the round goes to settlement
        """
        if not self.dealer.has_hole_card:
            return False
        if self.dealer.hand.is_blackjack:
            self._resolve_dealer_blackjack()
            return True
        self._resolve_open_insurance()
        return False

    def _resolve_dealer_blackjack(self) -> None:
        """Pay insurance and settle every hand against a dealer blackjack."""
        self.events.emit_new(EventType.DEALER_BLACKJACK, round_number=self.round_number)
        for box in self._boxes_in_play():
            box.resolve_insurance(dealer_blackjack=True)
            for hand in box.hands:
                if hand.is_blackjack:
                    hand.record_decision(NO_DECISION, (), "Player Blackjack")
                    hand.result = HandResult.PUSH
                else:
                    hand.record_decision(NO_DECISION, (), "Dealer Blackjack")
                    hand.result = HandResult.LOSE

    def _resolve_open_insurance(self) -> None:
        for box in self._boxes_in_play():
            if box.insurance_result == "none":
                box.resolve_insurance(dealer_blackjack=False)

    # -- player actions ----------------------------------------------------

    def _play_boxes(self) -> None:
        upcard = self.dealer.upcard
        for box in self._boxes_in_play():
            position = 0
            while position < len(box.hands):
                hand = box.hands[position]
                if self._skips_turn(hand):
                    position += 1
                    continue
                decision = box.player.strategy.get_action(hand, upcard)
                if self._apply_decision(box, position, decision):
                    position += 1

    @staticmethod
    def _skips_turn(hand: Hand) -> bool:
        """Split aces never act again and 21 or more needs no decision."""
        if hand.is_split_child and hand.cards[0].is_ace:
            return True
        return hand.value >= 21

    def _apply_decision(self, box: Box, position: int, decision: Decision) -> bool:
        """
        Apply the first legal, affordable candidate action.

        Returns:
            True when the hand's turn is over, False when the hand at
            ``position`` must be played again (after a hit or a split)
        """
        hand = box.hands[position]
        player = box.player

        def record(final_action: Action) -> None:
            hand.record_decision(
                decision.key,
                decision.action_names,
                final_action.value,
                is_deviation=decision.is_deviation,
                is_fallback=decision.is_fallback,
            )

        for action in decision.actions:
            if action == Action.SURRENDER:
                if not self._can_surrender(hand):
                    continue
                record(action)
                hand.result = HandResult.SURRENDER
                return True

            if action == Action.SPLIT:
                if not (
                    hand.is_pair
                    and len(box.hands) < self.rules.max_splits + 1
                    and player.place_bet(hand.bet)
                ):
                    continue
                record(action)
                box.split_hand(position, self.shoe)
                return False

            if action == Action.DOUBLE:
                if hand.is_split_child and not self.rules.allow_double_after_split:
                    continue
                if not player.place_bet(hand.bet):
                    continue
                record(action)
                hand.double_down()
                hand.add_card(self.shoe.deal())
                return True

            if action == Action.HIT:
                record(action)
                hand.add_card(self.shoe.deal())
                return False

            if action == Action.STAND:
                record(action)
                return True

        record(Action.STAND)
        return True

    def _can_surrender(self, hand: Hand) -> bool:
        if not self.rules.allow_surrender:
            return False
        if len(hand.cards) != 2 or hand.is_split_child:
            return False
        return not self.dealer.upcard.is_ace or self.rules.surrender_against_ace

    # -- dealer ------------------------------------------------------------

    def _play_dealer(self) -> bool:
        """
        Complete the dealer's hand.

        Returns:
            True if a late second card gave the dealer blackjack
        """
        boxes = self._boxes_in_play()
        live = any(hand.is_live for box in boxes for hand in box.hands)
        open_insurance = any(
            box.insurance_taken and box.insurance_result == "none" for box in boxes
        )

        if not live and not open_insurance:
            return False

        if not self.dealer.has_hole_card:
            self.dealer.hand.add_card(self.shoe.deal())
            if self.dealer.hand.is_blackjack:
                self._resolve_dealer_blackjack()
                return True

        self._resolve_open_insurance()
        if live:
            self.dealer.play(self.shoe, self.rules.hit_on_soft_17)
        return False

    # -- settlement and cleanup --------------------------------------------

    def _settle(self) -> None:
        dealer_hand = self.dealer.hand
        for box in self._boxes_in_play():
            for hand in box.hands:
                if hand.result is None:
                    hand.result = settle_hand(hand, dealer_hand)
                hand.payout = payout_for(hand.result, hand.bet)
                box.total_payout += hand.payout
            box.total_payout += box.perfect_pair_win + box.p21_win + box.insurance_payout
            box.player.receive_payout(box.total_payout)

        for player in self.players:
            if not player.is_active:
                continue
            player.check_status(self.rules.min_bet, self.round_number)
            if player.is_busted:
                logger.info(
                    "Player %d (%s) busted at round %d with balance %s",
                    player.player_id,
                    player.owner,
                    self.round_number,
                    player.balance,
                )
                self.events.emit_new(
                    EventType.PLAYER_BUSTED,
                    player_id=player.player_id,
                    round_number=self.round_number,
                    balance=player.balance,
                )
            elif player.is_retired:
                logger.info(
                    "Player %d (%s) retired at round %d with balance %s",
                    player.player_id,
                    player.owner,
                    self.round_number,
                    player.balance,
                )
                self.events.emit_new(
                    EventType.PLAYER_RETIRED,
                    player_id=player.player_id,
                    round_number=self.round_number,
                    balance=player.balance,
                )

    def _clean_up(self) -> None:
        for box in self.boxes:
            if box.player is None:
                continue
            for record in build_hand_records(
                self.round_number, self.shoe_number, box, self.shoe, self.dealer
            ):
                self.events.emit_new(EventType.HAND_SETTLED, record=record)
            if box.player.is_busted:
                box.vacate()
            else:
                box.reset()

        self.events.emit_new(
            EventType.ROUND_ENDED,
            round_number=self.round_number,
            cards_drawn=self.shoe.drawn_this_round,
        )
