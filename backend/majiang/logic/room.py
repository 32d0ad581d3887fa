"""
Room state machine.

A room seats up to four players and runs one game at a time:

    WAITING --(4th seat filled / start request)--> IN_PROGRESS
    IN_PROGRESS --(win / exhaustive draw / player left / abort)--> WAITING

Every operation validates before it mutates, so a rejected action leaves
the room exactly as it was. Operations return the ServiceEvents the session
layer must deliver; per-seat events are always built after the last
mutation so their seat numbers match the final seating.
"""

from collections.abc import Sequence

import structlog

from majiang.logic.enums import GameOutcome, GamePhase
from majiang.logic.events import (
    DiscardEvent,
    DrawEvent,
    GameEndEvent,
    GameStartedEvent,
    OccupancyEvent,
    ServiceEvent,
    StateEvent,
    broadcast,
    to_seat,
)
from majiang.logic.exceptions import (
    GameInProgressError,
    GameNotInProgressError,
    NotEnoughPlayersError,
    NotSeatedError,
    NotYourTurnError,
    RoomFullError,
    TileAccountingError,
)
from majiang.logic.rng import generate_seed
from majiang.logic.state import DiscardRecord, Player
from majiang.logic.tiles import TOTAL_TILES
from majiang.logic.types import DiscardView, PlayerView, SeatInfo
from majiang.logic.wall import Wall
from majiang.logic.win import is_winning_hand

logger = structlog.get_logger()

NUM_SEATS = 4
HAND_SIZE = 13
DEALER_SEAT = 0


class Room:
    def __init__(self, room_id: str, *, seed: str | None = None) -> None:
        self.room_id = room_id
        self.players: list[Player] = []
        self.wall = Wall([])
        self.discards: list[DiscardRecord] = []
        self.turn_index = DEALER_SEAT
        self.phase = GamePhase.WAITING
        self.seed = seed if seed is not None else generate_seed()
        self.games_started = 0
        self.last_outcome: GameOutcome | None = None
        self._log = logger.bind(room_id=room_id)

    # --- Queries ---

    @property
    def seated(self) -> int:
        return len(self.players)

    @property
    def is_full(self) -> bool:
        return self.seated >= NUM_SEATS

    @property
    def in_progress(self) -> bool:
        return self.phase == GamePhase.IN_PROGRESS

    @property
    def player_names(self) -> list[str]:
        return [p.name for p in self.players]

    def seat_of(self, player_id: str) -> int | None:
        for seat, player in enumerate(self.players):
            if player.player_id == player_id:
                return seat
        return None

    def seat_infos(self) -> list[SeatInfo]:
        return [SeatInfo(seat=seat, name=p.name, hand_size=len(p.hand)) for seat, p in enumerate(self.players)]

    def occupancy(self) -> OccupancyEvent:
        return OccupancyEvent(seated=self.seated, capacity=NUM_SEATS, players=self.seat_infos())

    def view_for(self, seat: int) -> PlayerView:
        return PlayerView(
            room_id=self.room_id,
            seat=seat,
            hand=self.players[seat].hand.tiles,
            is_my_turn=self.in_progress and seat == self.turn_index,
            wall_remaining=len(self.wall),
            current_seat=self.turn_index if self.in_progress else None,
            discards=[DiscardView(seat=d.seat, player_id=d.player_id, tile=d.tile) for d in self.discards],
            phase=self.phase,
            players=self.seat_infos(),
        )

    def snapshot(self) -> list[PlayerView]:
        """One view per seat, each holding only that seat's hand."""
        return [self.view_for(seat) for seat in range(self.seated)]

    # --- Operations ---

    def join(self, player_id: str, name: str, connection_id: str) -> list[ServiceEvent]:
        """
        Seat a player, or rebind the endpoint of an identity already seated.

        The fourth seat starts the game.
        """
        seat = self.seat_of(player_id)
        if seat is not None:
            player = self.players[seat]
            player.rebind(connection_id)
            player.name = name
            self._log.info("player rebound", player_id=player_id, seat=seat)
            return [broadcast(self.occupancy()), to_seat(seat, StateEvent(view=self.view_for(seat)))]

        if self.is_full:
            raise RoomFullError(self.room_id, self.seated)

        self.players.append(Player(player_id=player_id, name=name, connection_id=connection_id))
        self._log.info("player seated", player_id=player_id, seat=self.seated - 1)
        events = [broadcast(self.occupancy())]
        if self.is_full and not self.in_progress:
            events.extend(self.start_game())
        return events

    def start_game(self, tiles: Sequence[int] | None = None) -> list[ServiceEvent]:
        """
        Shuffle, deal 13 tiles to every seat in seat order and a 14th to the dealer.

        An explicit wall order can be given for replays; it must be a full
        tile set. A dealer hand that already wins ends the game at once.
        """
        if self.in_progress:
            raise GameInProgressError(f"room {self.room_id} already has a game in progress")
        if not self.is_full:
            raise NotEnoughPlayersError(f"room {self.room_id} needs {NUM_SEATS} players, has {self.seated}")

        wall = Wall.from_tiles(tiles) if tiles is not None else Wall.shuffled(self.seed, self.games_started)
        self.wall = wall
        self.discards = []
        self.turn_index = DEALER_SEAT
        self.phase = GamePhase.IN_PROGRESS
        self.last_outcome = None
        game_number = self.games_started
        self.games_started += 1

        for player in self.players:
            player.hand.clear()
            for _ in range(HAND_SIZE):
                player.hand.add(wall.draw())
        dealer = self.players[DEALER_SEAT]
        last_dealt = wall.draw()
        dealer.hand.add(last_dealt)

        self._log.info("game started", game_number=game_number)
        events = [broadcast(GameStartedEvent(game_number=game_number, dealer_seat=DEALER_SEAT))]

        if is_winning_hand(dealer.hand.tiles):
            events.append(
                self._finish(
                    GameOutcome.FIRST_TURN_WIN,
                    winner_seat=DEALER_SEAT,
                    winning_tile=last_dealt,
                    winning_hand=dealer.hand.tiles,
                )
            )

        self._check_tile_conservation()
        events.extend(self._state_events())
        return events

    def play_tile(self, player_id: str, tile: int, slot: int) -> list[ServiceEvent]:
        """
        Discard a tile, then resolve: discard win, or next seat draws.

        Discard wins are checked in rotation order from the discarder's next
        seat; the first seat that completes a hand wins.
        """
        if not self.in_progress:
            raise GameNotInProgressError(f"room {self.room_id} has no game in progress")
        seat = self.seat_of(player_id)
        if seat is None:
            raise NotSeatedError(f"player {player_id} is not seated in room {self.room_id}")
        if seat != self.turn_index:
            raise NotYourTurnError(f"it is seat {self.turn_index}'s turn, not seat {seat}'s")

        self.players[seat].hand.remove_at(slot, tile)
        self.discards.append(DiscardRecord(seat=seat, player_id=player_id, tile=tile))
        self._log.debug("tile discarded", seat=seat, tile=tile)
        events = [broadcast(DiscardEvent(seat=seat, tile=tile))]

        winner = self._find_discard_winner(seat, tile)
        if winner is not None:
            events.append(
                self._finish(
                    GameOutcome.DISCARD_WIN,
                    winner_seat=winner,
                    discarder_seat=seat,
                    winning_tile=tile,
                    winning_hand=self.players[winner].hand.with_tile(tile),
                )
            )
        else:
            events.extend(self._advance_turn(seat))

        self._check_tile_conservation()
        events.extend(self._state_events())
        return events

    def leave(self, player_id: str, connection_id: str | None = None) -> list[ServiceEvent]:
        """
        Free a player's seat.

        With a connection_id, only a seat still bound to that endpoint is
        freed, so a disconnect that arrives after a re-join is ignored.
        Leaving mid-game abandons the game.
        """
        seat = self.seat_of(player_id)
        if seat is None:
            return []
        player = self.players[seat]
        if connection_id is not None and player.connection_id != connection_id:
            self._log.info("stale disconnect ignored", player_id=player_id, seat=seat)
            return []

        events: list[ServiceEvent] = []
        if self.in_progress:
            events.append(self._finish(GameOutcome.ABANDONED))
        self.players.pop(seat)
        self._log.info("player left", player_id=player_id, seat=seat)
        events.append(broadcast(self.occupancy()))
        events.extend(self._state_events())
        return events

    def abort(self) -> list[ServiceEvent]:
        """End the current game after an internal error."""
        if not self.in_progress:
            return []
        events = [self._finish(GameOutcome.ABORTED)]
        events.extend(self._state_events())
        return events

    # --- Internals ---

    def _find_discard_winner(self, discarder: int, tile: int) -> int | None:
        for offset in range(1, self.seated):
            candidate = (discarder + offset) % self.seated
            if is_winning_hand(self.players[candidate].hand.with_tile(tile)):
                return candidate
        return None

    def _advance_turn(self, discarder: int) -> list[ServiceEvent]:
        self.turn_index = (discarder + 1) % self.seated
        if self.wall.is_empty:
            return [self._finish(GameOutcome.EXHAUSTIVE_DRAW)]

        player = self.players[self.turn_index]
        drawn = self.wall.draw()
        player.hand.add(drawn)
        events = [broadcast(DrawEvent(seat=self.turn_index, wall_remaining=len(self.wall)))]
        if is_winning_hand(player.hand.tiles):
            events.append(
                self._finish(
                    GameOutcome.SELF_DRAWN_WIN,
                    winner_seat=self.turn_index,
                    winning_tile=drawn,
                    winning_hand=player.hand.tiles,
                )
            )
        return events

    def _finish(
        self,
        outcome: GameOutcome,
        *,
        winner_seat: int | None = None,
        discarder_seat: int | None = None,
        winning_tile: int | None = None,
        winning_hand: list[int] | None = None,
    ) -> ServiceEvent:
        self.phase = GamePhase.WAITING
        self.last_outcome = outcome
        self._log.info("game ended", outcome=outcome, winner_seat=winner_seat)
        return broadcast(
            GameEndEvent(
                outcome=outcome,
                winner_seat=winner_seat,
                discarder_seat=discarder_seat,
                winning_tile=winning_tile,
                winning_hand=winning_hand,
            )
        )

    def _state_events(self) -> list[ServiceEvent]:
        return [to_seat(view.seat, StateEvent(view=view)) for view in self.snapshot()]

    def _check_tile_conservation(self) -> None:
        in_hands = sum(len(p.hand) for p in self.players)
        total = in_hands + len(self.wall) + len(self.discards)
        if total != TOTAL_TILES:
            raise TileAccountingError(
                f"room {self.room_id}: hands={in_hands} wall={len(self.wall)} "
                f"discards={len(self.discards)} sum to {total}, expected {TOTAL_TILES}"
            )
