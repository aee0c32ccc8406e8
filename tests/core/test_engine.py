"""Tests for the round engine."""

from decimal import Decimal

import pytest
from transitions import MachineError

from bjsim.game import EventType, RoundState
from bjsim.hand import HandResult
from bjsim.rules import TableRules
from bjsim.strategy import Action, CountingStrategy, TableStrategy, load_strategy


def settled(engine):
    """Hand records emitted so far."""
    return [
        event.data["record"]
        for event in engine.events.history
        if event.event_type == EventType.HAND_SETTLED
    ]


def events_of(engine, event_type):
    return [event for event in engine.events.history if event.event_type == event_type]


@pytest.fixture
def insuring_strategy():
    """Always stands, always insures."""
    return TableStrategy("insure", {}, fallback=Action.STAND, accept_insurance=True)


class TestRoundFlow:
    """Tests for the state machine."""

    def test_returns_to_idle(self, make_table):
        """A round ends back in IDLE."""
        engine = make_table(cards=["10S", "6D", "9H", "10C", "KD"])
        assert engine.state == RoundState.IDLE
        engine.play_round(1)
        assert engine.state == RoundState.IDLE

    def test_illegal_transition(self, make_table):
        """Skipping a phase is refused."""
        engine = make_table()
        with pytest.raises(MachineError):
            engine.start_player_actions()

    def test_counting_strategies_bound_to_shoe(self, make_table, hilo_strategy):
        """Counting strategies read the engine's shoe."""
        engine = make_table(strategy=hilo_strategy)
        assert isinstance(hilo_strategy, CountingStrategy)
        assert hilo_strategy.shoe is engine.shoe

    def test_round_events(self, make_table):
        """A round is bracketed by start and end events."""
        engine = make_table(cards=["10S", "6D", "9H", "10C", "KD"])
        engine.play_round(1)
        assert len(events_of(engine, EventType.ROUND_STARTED)) == 1
        assert len(events_of(engine, EventType.ROUND_ENDED)) == 1
        assert len(events_of(engine, EventType.BETS_PLACED)) == 1


class TestPlayerBlackjack:
    """End-to-end natural blackjack."""

    def test_blackjack_pays_three_to_two(self, make_table):
        """Box A♠ K♥ against dealer 5♦ 9♣ is paid 2.5x with no further dealing."""
        engine = make_table(cards=["AS", "5D", "KH", "9C"])
        engine.play_round(1)

        (record,) = settled(engine)
        assert record.result == "blackjack"
        assert record.hand_payout == Decimal("25")
        assert record.is_blackjack
        assert engine.players[0].balance == Decimal("1015")
        assert engine.shoe.drawn_this_round == 4
        assert record.dealer_final_hand == "5♦;9♣"
        assert record.decision_trace == ()


class TestDealerBlackjack:
    """Tests for the dealer peek."""

    def test_peek_loses_hands(self, make_table):
        """A dealer blackjack beats every non-natural hand at once."""
        engine = make_table(cards=["10S", "AH", "9C", "KD"])
        engine.play_round(1)

        (record,) = settled(engine)
        assert record.result == "lose"
        assert record.dealer_blackjack
        assert record.decision_trace[-1].final_action == "Dealer Blackjack"
        assert engine.players[0].balance == Decimal("990")
        assert engine.shoe.drawn_this_round == 4
        assert len(events_of(engine, EventType.DEALER_BLACKJACK)) == 1

    def test_peek_pushes_player_blackjack(self, make_table):
        """Blackjack against blackjack pushes."""
        engine = make_table(cards=["AS", "AH", "KC", "KD"])
        engine.play_round(1)

        (record,) = settled(engine)
        assert record.result == "push"
        assert record.decision_trace[-1].final_action == "Player Blackjack"
        assert engine.players[0].balance == Decimal("1000")

    def test_peek_with_ten_upcard(self, make_table):
        """The hole card is checked whatever the upcard."""
        engine = make_table(cards=["9S", "KH", "9C", "AD"])
        engine.play_round(1)
        (record,) = settled(engine)
        assert record.result == "lose"
        assert record.player_draws == ""

    def test_insurance_pays(self, make_table, insuring_strategy):
        """Insurance pays twice its stake when the dealer has blackjack."""
        engine = make_table(cards=["10S", "AH", "9C", "KD"], strategy=insuring_strategy)
        engine.play_round(1)

        (record,) = settled(engine)
        assert record.insurance_taken
        assert record.insurance_bet == Decimal("5")
        assert record.insurance_result == "win"
        assert record.insurance_payout == Decimal("10")
        assert engine.players[0].balance == Decimal("995")

    def test_insurance_lost(self, make_table, insuring_strategy):
        """Insurance is lost when the peek finds no blackjack."""
        engine = make_table(cards=["10S", "AH", "9C", "7D"], strategy=insuring_strategy)
        engine.play_round(1)

        (record,) = settled(engine)
        assert record.insurance_result == "lose"
        assert record.result == "win"
        assert engine.players[0].balance == Decimal("1005")

    def test_no_insurance_against_non_ace(self, make_table, insuring_strategy):
        """Insurance is only offered against an ace."""
        engine = make_table(cards=["10S", "KH", "9C", "7D"], strategy=insuring_strategy)
        engine.play_round(1)
        (record,) = settled(engine)
        assert not record.insurance_taken
        assert record.insurance_result == "none"


class TestNoHoleCard:
    """Tests for tables where the dealer takes the second card late."""

    @pytest.fixture
    def enhc_rules(self):
        return TableRules(dealer_takes_hole_card=False, hit_on_soft_17=False)

    def test_late_blackjack_takes_everything(self, make_table, enhc_rules):
        """A dealer blackjack on the late card beats the standing hand."""
        engine = make_table(cards=["10S", "KD", "9H", "AC"], rules=enhc_rules)
        engine.play_round(1)

        (record,) = settled(engine)
        assert record.result == "lose"
        assert record.dealer_blackjack
        assert engine.shoe.drawn_this_round == 4

    def test_blackjack_alone_needs_no_dealer_card(self, make_table, enhc_rules):
        """With no live hand the dealer never takes a second card."""
        engine = make_table(cards=["AS", "KD", "KH"], rules=enhc_rules)
        engine.play_round(1)

        (record,) = settled(engine)
        assert record.result == "blackjack"
        assert record.dealer_final_hand == "K♦"
        assert engine.shoe.drawn_this_round == 3

    def test_dealer_draws_out(self, make_table, enhc_rules):
        """Without blackjack the dealer completes the hand normally."""
        engine = make_table(cards=["10S", "6D", "9H", "10C", "KD"], rules=enhc_rules)
        engine.play_round(1)
        (record,) = settled(engine)
        assert record.dealer_final_hand == "6♦;10♣;K♦"
        assert record.dealer_bust
        assert record.result == "win"

    def test_dealer_draws_against_surrender(self, make_table):
        """A surrendered hand still makes the dealer take the late card and draw."""
        rules = TableRules(dealer_takes_hole_card=False, allow_surrender=True)
        strategy = TableStrategy(
            "sur", {"hard_16_vs_10": [Action.SURRENDER, Action.HIT]}, fallback=Action.STAND
        )
        engine = make_table(cards=["10S", "10H", "6C", "6D", "5H"], rules=rules, strategy=strategy)
        engine.play_round(1)

        (record,) = settled(engine)
        assert record.result == "surrender"
        assert record.dealer_final_hand == "10♥;6♦;5♥"
        assert engine.shoe.drawn_this_round == 5


class TestBetting:
    """Tests for bet sizing and the affordability cascade."""

    def test_minimum_bet_without_side_bets(self, make_table):
        """A short bankroll falls back to the table minimum alone."""
        engine = make_table(
            cards=["10S", "6D", "9C", "10D", "KC"],
            balance="12",
            main_bet="20",
            perfect_pair="5",
            p21="5",
        )
        engine.play_round(1)

        (record,) = settled(engine)
        assert record.hand_bet == Decimal("10")
        assert record.perfect_pair_bet == Decimal("0")
        assert record.p21_bet == Decimal("0")
        assert engine.players[0].balance == Decimal("22")

    def test_drops_perfect_pairs_first(self, make_table):
        """Main plus 21+3 is tried before main plus Perfect Pairs."""
        engine = make_table(
            cards=["10S", "6D", "9C", "10D", "KC"],
            balance="28",
            main_bet="20",
            perfect_pair="5",
            p21="5",
        )
        engine.play_round(1)

        (record,) = settled(engine)
        assert record.hand_bet == Decimal("20")
        assert record.perfect_pair_bet == Decimal("0")
        assert record.p21_bet == Decimal("5")

    def test_bets_clamped(self, make_table):
        """Main and side bets are brought inside the table limits."""
        engine = make_table(
            cards=["10S", "6D", "9C", "10D", "KC"],
            main_bet="5000",
            perfect_pair="1",
            p21="500",
            balance="100000",
        )
        engine.play_round(1)

        (record,) = settled(engine)
        assert record.hand_bet == Decimal("1000")
        assert record.perfect_pair_bet == Decimal("2")
        assert record.p21_bet == Decimal("200")
        assert record.configured_bet == Decimal("5000")

    def test_box_sits_out(self, make_table):
        """A box that cannot afford any bet gets no hand."""
        engine = make_table(balance="5")
        engine.play_round(1)

        assert settled(engine) == []
        assert len(events_of(engine, EventType.BOX_SAT_OUT)) == 1
        assert engine.shoe.drawn_this_round == 2

    def test_counting_bet_ramp(self, make_table):
        """A counting strategy resizes the main bet from the live count."""
        rules = TableRules(num_decks=1)
        strategy = load_strategy("hilo", directory="/nonexistent", rules=rules)
        engine = make_table(
            rules=rules,
            cards=["2S", "3S", "4S", "5S", "6S", "2H", "10S", "6D", "9C", "10D", "KC"],
            strategy=strategy,
        )
        for _ in range(6):
            engine.shoe.deal()
        engine.play_round(1)

        (record,) = settled(engine)
        assert record.recommended_bet == Decimal("80")
        assert record.hand_bet == Decimal("80")


class TestPlayerActions:
    """Tests for applying strategy decisions."""

    def test_hit_requeries_strategy(self, make_table):
        """Each hit is followed by a fresh decision."""
        strategy = TableStrategy("hit", {}, fallback=Action.HIT)
        engine = make_table(cards=["2S", "10D", "3H", "7C", "4C", "5C", "6C", "AC"], strategy=strategy)
        engine.play_round(1)

        (record,) = settled(engine)
        assert record.hand == "2♠;3♥;4♣;5♣;6♣;A♣"
        assert [entry.final_action for entry in record.decision_trace] == ["hit"] * 4
        assert all(entry.is_fallback for entry in record.decision_trace)
        assert record.result == "win"

    def test_double(self, make_table, basic_strategy):
        """A double takes one card at twice the stake."""
        engine = make_table(cards=["6S", "5D", "5H", "10C", "10D", "KH"], strategy=basic_strategy)
        engine.play_round(1)

        (record,) = settled(engine)
        assert record.is_doubled
        assert record.hand_bet == Decimal("20")
        assert record.hand_payout == Decimal("40")
        assert engine.players[0].balance == Decimal("1020")

    def test_unaffordable_double_hits(self, make_table, basic_strategy):
        """When the double cannot be paid the next candidate is used."""
        engine = make_table(
            cards=["6S", "5D", "5H", "10C", "10D", "KH"],
            strategy=basic_strategy,
            balance="10",
        )
        engine.play_round(1)

        (record,) = settled(engine)
        assert not record.is_doubled
        entry = record.decision_trace[0]
        assert entry.actions == ("double", "hit")
        assert entry.final_action == "hit"
        assert engine.players[0].balance == Decimal("20")

    def test_no_double_after_split_when_disallowed(self, make_table):
        """Split hands cannot double without DAS."""
        rules = TableRules(allow_double_after_split=False)
        strategy = TableStrategy(
            "das",
            {"pair_5_vs_6": [Action.SPLIT], "hard_11_vs_6": [Action.DOUBLE, Action.STAND]},
            fallback=Action.STAND,
        )
        engine = make_table(cards=["5S", "6D", "5H", "10C", "6C", "6H", "KD"], rules=rules, strategy=strategy)
        engine.play_round(1)

        records = settled(engine)
        assert len(records) == 2
        assert not any(record.is_doubled for record in records)
        assert records[0].decision_trace[-1].final_action == "stand"

    def test_surrender(self, make_table, surrender_rules):
        """A surrendered hand gets half its stake back."""
        strategy = load_strategy("basic", directory="/nonexistent", rules=surrender_rules)
        engine = make_table(cards=["10S", "KD", "6H", "7C"], rules=surrender_rules, strategy=strategy)
        engine.play_round(1)

        (record,) = settled(engine)
        assert record.result == "surrender"
        assert record.hand_payout == Decimal("5")
        assert engine.players[0].balance == Decimal("995")
        assert engine.shoe.drawn_this_round == 4

    def test_dealer_plays_out_against_surrender(self, make_table, surrender_rules):
        """The dealer completes the hand even when every hand surrendered."""
        strategy = TableStrategy(
            "sur", {"hard_16_vs_10": [Action.SURRENDER, Action.HIT]}, fallback=Action.STAND
        )
        engine = make_table(
            cards=["10S", "10H", "6C", "6D", "5H"], rules=surrender_rules, strategy=strategy
        )
        engine.play_round(1)

        (record,) = settled(engine)
        assert record.result == "surrender"
        assert record.hand_payout == Decimal("5")
        assert record.dealer_final_hand == "10♥;6♦;5♥"
        assert engine.shoe.drawn_this_round == 5

    def test_no_surrender_against_ace(self, make_table):
        """Surrender against an ace needs its own rule."""
        rules = TableRules(allow_surrender=True, surrender_against_ace=False)
        strategy = TableStrategy(
            "sur", {"hard_16_vs_A": [Action.SURRENDER, Action.HIT]}, fallback=Action.STAND
        )
        engine = make_table(cards=["10S", "AD", "6H", "7C", "5C"], rules=rules, strategy=strategy)
        engine.play_round(1)

        (record,) = settled(engine)
        assert record.decision_trace[0].final_action == "hit"
        assert record.result == "win"

    def test_all_candidates_illegal_stands(self, make_table):
        """With no legal candidate the hand stands."""
        strategy = TableStrategy("bad", {"hard_16_vs_10": [Action.SURRENDER, Action.SPLIT]}, Action.HIT)
        engine = make_table(cards=["10S", "KD", "6H", "7C"], strategy=strategy)
        engine.play_round(1)

        (record,) = settled(engine)
        entry = record.decision_trace[0]
        assert entry.actions == ("surrender", "split")
        assert entry.final_action == "stand"


class TestSplits:
    """Tests for splitting."""

    @pytest.fixture
    def split_eights(self):
        return TableStrategy("split", {"pair_8_vs_6": [Action.SPLIT, Action.STAND]}, fallback=Action.STAND)

    def test_split_limit(self, make_table, split_eights):
        """A split is refused once the box holds MaxSplits + 1 hands."""
        engine = make_table(
            cards=["8S", "6D", "8H", "10C", "8C", "2D", "KD"],
            rules=TableRules(max_splits=1),
            strategy=split_eights,
        )
        engine.play_round(1)

        records = settled(engine)
        assert len(records) == 2
        assert records[0].hand == "8♠;8♣"
        assert [entry.final_action for entry in records[0].decision_trace] == ["split", "stand"]
        assert records[1].hand == "8♥;2♦"
        assert records[1].split_count == 1
        assert engine.players[0].balance == Decimal("1020")

    def test_resplit_processes_children_first(self, make_table, split_eights):
        """Children of a split are played before hands further right."""
        engine = make_table(
            cards=["8S", "6D", "8H", "10C", "8C", "2D", "3D", "4D", "KD"],
            strategy=split_eights,
        )
        engine.play_round(1)

        records = settled(engine)
        assert [record.hand for record in records] == ["8♠;3♦", "8♣;4♦", "8♥;2♦"]
        assert [record.hand_id for record in records] == ["B1-4", "B1-5", "B1-3"]
        assert records[-1].box_total_invested == Decimal("30")
        assert records[0].box_total_invested is None

    def test_split_aces_get_one_card(self, make_table, basic_strategy):
        """Split aces receive one card each and 21 pays even money."""
        engine = make_table(cards=["AS", "6D", "AH", "10C", "AD", "KC", "KD"], strategy=basic_strategy)
        engine.play_round(1)

        records = settled(engine)
        assert [record.hand for record in records] == ["A♠;A♦", "A♥;K♣"]
        assert all(record.decision_trace[-1].final_action == "split" for record in records)
        assert not records[1].is_blackjack
        assert records[1].hand_payout == Decimal("20")
        assert engine.players[0].balance == Decimal("1020")


class TestSettlement:
    """Tests for payouts and player status."""

    def test_side_bets_paid(self, make_table):
        """Side bet wins are paid with the box total."""
        engine = make_table(cards=["8S", "8D", "8H", "10C"], perfect_pair="5", p21="5")
        engine.play_round(1)

        (record,) = settled(engine)
        assert record.perfect_pair_type == "Mixed Pair"
        assert record.perfect_pair_win == Decimal("35")
        assert record.p21_type == "Three of a Kind"
        assert record.p21_win == Decimal("155")
        assert record.result == "lose"
        assert record.box_payout == Decimal("190")
        assert engine.players[0].balance == Decimal("1170")

    def test_player_busted(self, make_table):
        """A player below the minimum is busted and the box vacated."""
        engine = make_table(cards=["10S", "9D", "6H", "10C"], balance="10")
        engine.play_round(1)

        player = engine.players[0]
        assert player.is_busted
        assert player.busted_at_round == 1
        assert not engine.boxes[0].is_occupied
        assert not engine.has_active_players
        assert len(events_of(engine, EventType.PLAYER_BUSTED)) == 1
        (record,) = settled(engine)
        assert record.player_is_busted

    def test_player_retired(self, make_table):
        """A player reaching the target retires."""
        engine = make_table(cards=["AS", "5D", "KH", "9C"], balance="100", target_balance="110")
        engine.play_round(1)

        player = engine.players[0]
        assert player.is_retired
        assert player.retired_at_round == 1
        assert engine.boxes[0].is_occupied
        assert len(events_of(engine, EventType.PLAYER_RETIRED)) == 1

    def test_retired_player_takes_no_bets(self, make_table):
        """Retired players sit out later rounds."""
        engine = make_table(cards=["AS", "5D", "KH", "9C"], balance="100", target_balance="110")
        engine.play_round(1)
        engine.play_round(2)
        assert len(settled(engine)) == 1
        assert engine.players[0].balance == Decimal("115")

    def test_box_reset_after_round(self, make_table):
        """Boxes return to their configured bets between rounds."""
        engine = make_table(cards=["10S", "6D", "9C", "10D", "KC"], balance="12", main_bet="20")
        engine.play_round(1)
        box = engine.boxes[0]
        assert box.main_bet == Decimal("20")
        assert box.hands == []

    def test_record_fields(self, make_table):
        """Records carry the round, shoe and balance context."""
        engine = make_table(cards=["10S", "6D", "9C", "10D", "KC"])
        engine.shoe_number = 3
        engine.play_round(5)

        (record,) = settled(engine)
        assert record.round_number == 5
        assert record.shoe_number == 3
        assert record.box_id == "B1"
        assert record.hand_id == "B1-1"
        assert record.owner == "tester"
        assert record.strategy == "stand"
        assert record.round_start_balance == Decimal("1000")
        assert record.player_balance == Decimal("1010")
        assert record.dealer_upcard == "6♦"
        assert record.player_draws == ""
        assert record.cards_drawn_round == 5
        assert record.box_total_invested == Decimal("10")
        assert record.box_total_earned == Decimal("20")
        assert HandResult(record.result) == HandResult.WIN
