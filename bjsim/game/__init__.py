"""Round engine, table entities and the simulation runner."""

from bjsim.game.events import EventEmitter, EventType, GameEvent
from bjsim.game.state import RoundState
from bjsim.game.table import Box, Dealer, Player
from bjsim.game.records import HandRecord, build_hand_records
from bjsim.game.engine import RoundEngine
from bjsim.game.simulation import PlayerSummary, Simulation, SimulationSummary

__all__ = [
    "EventEmitter",
    "EventType",
    "GameEvent",
    "RoundState",
    "Box",
    "Dealer",
    "Player",
    "HandRecord",
    "build_hand_records",
    "RoundEngine",
    "PlayerSummary",
    "Simulation",
    "SimulationSummary",
]
