import logging
import random
from dataclasses import dataclass, field
from enum import Enum

from freecell import Rules
from freecell.Cards import Card, Rank, Suit, decodeStack, encodeStack, shuffledDeck
from freecell.Interface import Interface

logger = logging.getLogger(__name__)

TABLEAU_COUNT = 8
FREE_CELL_COUNT = 4
DEAL_SIZES = (7, 7, 7, 7, 6, 6, 6, 6)
EMPTY_CELL = "-"


class GameError(Exception):
    pass


class GameConfig:
    EMPTY_TABLEAU_RULES = ("any", "king")

    def __init__(self):
        self.seed = None
        # "any": any card may start an empty tableau pile; "king": only kings.
        self.emptyTableauRule = "any"

    def isKingOnly(self):
        return self.emptyTableauRule == "king"

    @staticmethod
    def loadFromFile(path):
        config = GameConfig()
        try:
            with open(path, encoding="utf-8") as f:
                lines = f.readlines()
        except OSError:
            logger.warning("cannot read config file %s, using defaults", path)
            return config
        for l in lines:
            l = l.strip()
            if len(l) == 0 or l.startswith("#"):
                continue
            try:
                (k, v) = l.split("=", 1)
            except ValueError:
                logger.warning("ignoring malformed config line %r", l)
                continue
            k = k.strip()
            v = v.strip()
            if k not in config.__dict__:
                logger.warning("ignoring unknown config key %r", k)
                continue
            if v == "None":
                v = None
            else:
                try:
                    v = int(v)
                except ValueError:
                    pass
            config.__setattr__(k, v)
        if config.seed is not None and not isinstance(config.seed, int):
            logger.warning("seed %r is not an integer, dealing unseeded", config.seed)
            config.seed = None
        if config.emptyTableauRule not in GameConfig.EMPTY_TABLEAU_RULES:
            logger.warning("unknown emptyTableauRule %r, using 'any'", config.emptyTableauRule)
            config.emptyTableauRule = "any"
        return config

    def saveToFile(self, path):
        with open(path, "w", encoding="utf-8") as f:
            for k, v in self.__dict__.items():
                f.write(f"{k}={str(v)}\n")


class Place(Enum):
    TABLEAU = "tableau"
    FREE_CELL = "freecell"
    FOUNDATION = "foundation"


class MoveKind(Enum):
    TABLEAU_TO_TABLEAU = (Place.TABLEAU, Place.TABLEAU)
    TABLEAU_TO_FREE_CELL = (Place.TABLEAU, Place.FREE_CELL)
    TABLEAU_TO_FOUNDATION = (Place.TABLEAU, Place.FOUNDATION)
    FREE_CELL_TO_TABLEAU = (Place.FREE_CELL, Place.TABLEAU)
    FREE_CELL_TO_FOUNDATION = (Place.FREE_CELL, Place.FOUNDATION)
    FREE_CELL_TO_FREE_CELL = (Place.FREE_CELL, Place.FREE_CELL)

    @property
    def source(self) -> Place:
        return self.value[0]

    @property
    def destination(self) -> Place:
        return self.value[1]


@dataclass(frozen=True)
class Move:
    """
    One card moved from one container to another.

    ``src`` and ``dest`` are pile or cell indices, or a Suit for foundations.
    ``srcIdx`` is where undo puts the card back into its source tableau pile
    (-1 for free-cell sources). For a single move that is the position the
    card left; for every card of a run moved by moveSequence it is the base
    of the run, so undoing the entries newest first rebuilds the run in order.
    """

    kind: MoveKind
    src: object
    dest: object
    card: Card
    srcIdx: int = -1

    def __str__(self):
        return f"{self.kind.name}({self.src}->{self.dest}, {self.card})"


@dataclass
class Destinations:
    """Where a card (or the run it leads) could legally go right now."""

    freeCells: list = field(default_factory=list)
    foundations: list = field(default_factory=list)
    # tableau pile index -> number of cards that could move there
    tableau: dict = field(default_factory=dict)

    def isEmpty(self):
        return not (self.freeCells or self.foundations or self.tableau)


class GameState:
    def __init__(self):
        self.tableauPiles = [[] for _ in range(TABLEAU_COUNT)]
        self.freeCells = [None] * FREE_CELL_COUNT
        self.foundationPiles = {suit: [] for suit in Suit}

    def reset(self):
        # Containers are cleared in place; callers may hold references to them.
        for pile in self.tableauPiles:
            pile.clear()
        for i in range(len(self.freeCells)):
            self.freeCells[i] = None
        for pile in self.foundationPiles.values():
            pile.clear()

    def copy(self):
        state = GameState()
        state.tableauPiles = [list(pile) for pile in self.tableauPiles]
        state.freeCells = list(self.freeCells)
        state.foundationPiles = {suit: list(pile) for suit, pile in self.foundationPiles.items()}
        return state

    def emptyFreeCellCount(self):
        return sum(1 for c in self.freeCells if c is None)

    def emptyTableauCount(self, exclude=()):
        return sum(1 for i, pile in enumerate(self.tableauPiles) if len(pile) == 0 and i not in exclude)

    def allCards(self):
        cards = []
        for pile in self.tableauPiles:
            cards.extend(pile)
        cards.extend(c for c in self.freeCells if c is not None)
        for pile in self.foundationPiles.values():
            cards.extend(pile)
        return cards

    def isCompleteDeck(self):
        cards = self.allCards()
        return len(cards) == 52 and len(set(cards)) == 52

    def peek(self, place: Place, index):
        if place is Place.FREE_CELL:
            return self.freeCells[index]
        pile = self.tableauPiles[index] if place is Place.TABLEAU else self.foundationPiles[index]
        return pile[-1] if pile else None

    def take(self, place: Place, index):
        if place is Place.TABLEAU:
            return self.tableauPiles[index].pop()
        if place is Place.FREE_CELL:
            card = self.freeCells[index]
            self.freeCells[index] = None
            return card
        return self.foundationPiles[index].pop()

    def put(self, place: Place, index, card: Card, pos=-1):
        if place is Place.TABLEAU:
            pile = self.tableauPiles[index]
            if 0 <= pos < len(pile):
                pile.insert(pos, card)
            else:
                pile.append(card)
        elif place is Place.FREE_CELL:
            self.freeCells[index] = card
        else:
            self.foundationPiles[index].append(card)

    def relocate(self, kind: MoveKind, src, dest) -> Move:
        """Moves the exposed card of ``src`` onto ``dest`` without checking any rule."""
        srcIdx = len(self.tableauPiles[src]) - 1 if kind.source is Place.TABLEAU else -1
        card = self.take(kind.source, src)
        self.put(kind.destination, dest, card)
        return Move(kind, src, dest, card, srcIdx)


def _planRun(state: GameState, legs, count, src, dest, cells, piles, kingOnly=False):
    """
    Appends to ``legs`` single-card moves carrying the top ``count`` cards of
    tableau pile ``src`` onto ``dest``, parking in ``cells`` and ``piles``.
    """
    if count <= len(cells) + 1:
        parked = cells[:count - 1]
        for cell in parked:
            legs.append(state.relocate(MoveKind.TABLEAU_TO_FREE_CELL, src, cell))
        lead = state.peek(Place.TABLEAU, src)
        if not Rules.canPlaceOnTableau(lead, state.peek(Place.TABLEAU, dest), kingOnly):
            return False
        legs.append(state.relocate(MoveKind.TABLEAU_TO_TABLEAU, src, dest))
        for cell in reversed(parked):
            legs.append(state.relocate(MoveKind.FREE_CELL_TO_TABLEAU, cell, dest))
        return True
    if len(piles) == 0:
        return False
    # Park a sub-run on an empty pile, move the rest, then bring the sub-run over.
    col, rest = piles[0], piles[1:]
    part = min(count - 1, Rules.maxMovableCards(len(cells), len(rest)))
    return (_planRun(state, legs, part, src, col, cells, rest, kingOnly)
            and _planRun(state, legs, count - part, src, dest, cells, rest, kingOnly)
            and _planRun(state, legs, part, col, dest, cells, rest, kingOnly))


def _isIndex(i, size):
    return isinstance(i, int) and not isinstance(i, bool) and 0 <= i < size


class Core:
    """
    can*** and the queries never mutate anything.
    The move methods either apply a legal move completely and log it, or
    reject it and leave the state, the log and the move count untouched.
    """

    def __init__(self, interface: Interface = None, config: GameConfig = None):
        self.interface = None
        self.config = config if config is not None else GameConfig()
        self.gameState = GameState()
        self.history = HistoryRecorder(self)
        self.moveCount = 0
        self.gameEnded = False
        self.registerInterface(interface if interface is not None else Interface())

    def registerInterface(self, interface: Interface):
        self.interface = interface
        interface.core = self

    def startNewGame(self, config: GameConfig = None):
        if config is not None:
            self.config = config
        seed = self.config.seed
        deck = shuffledDeck(random.Random(seed) if seed is not None else None)
        self.gameState.reset()
        i = 0
        for pile, size in zip(self.gameState.tableauPiles, DEAL_SIZES):
            pile.extend(deck[i:i + size])
            i += size
        self.history.clear()
        self.moveCount = 0
        self.gameEnded = False
        logger.info("new deal, seed=%s, empty tableau rule=%s", seed, self.config.emptyTableauRule)
        self.interface.onStart()

    # ---- queries ----

    def canPlaceOnTableau(self, card: Card, destTop: Card = None):
        return Rules.canPlaceOnTableau(card, destTop, self.config.isKingOnly())

    def canPlaceOnFoundation(self, card: Card, pile=None):
        return Rules.canPlaceOnFoundation(card, pile)

    def canPlaceOnFreeCell(self, freeCells=None):
        return Rules.canPlaceOnFreeCell(self.gameState.freeCells if freeCells is None else freeCells)

    def topCard(self, pileIndex):
        if not _isIndex(pileIndex, TABLEAU_COUNT):
            return None
        return self.gameState.peek(Place.TABLEAU, pileIndex)

    def movableRun(self, pileIndex):
        if not _isIndex(pileIndex, TABLEAU_COUNT):
            return []
        return Rules.movableRun(self.gameState.tableauPiles[pileIndex])

    def maxMovableCards(self):
        state = self.gameState
        return Rules.maxMovableCards(state.emptyFreeCellCount(), state.emptyTableauCount())

    def destinationsWithCapacity(self, pileIndex):
        """
        For each other tableau pile, the most cards of ``pileIndex``'s movable
        run that could be moved there now. Piles accepting nothing are left out.
        """
        run = self.movableRun(pileIndex)
        if len(run) == 0:
            return {}
        pile = self.gameState.tableauPiles[pileIndex]
        capacity = self.maxMovableCards()
        kingOnly = self.config.isKingOnly()
        result = {}
        for i in range(TABLEAU_COUNT):
            if i == pileIndex:
                continue
            length = Rules.longestPlaceableSuffix(pile, run, self.topCard(i), capacity, kingOnly)
            while length > 0 and self._planLegs(pileIndex, i, length) is None:
                length = Rules.longestPlaceableSuffix(pile, run, self.topCard(i), length - 1, kingOnly)
            if length > 0:
                result[i] = length
        return result

    def validDestinations(self, place: Place, index) -> Destinations:
        """Every legal target for the card at a tableau top or in a free cell."""
        state = self.gameState
        dests = Destinations()
        if place is Place.TABLEAU:
            card = self.topCard(index)
        elif place is Place.FREE_CELL and _isIndex(index, FREE_CELL_COUNT):
            card = state.freeCells[index]
        else:
            card = None
        if card is None:
            return dests

        dests.freeCells = [i for i, c in enumerate(state.freeCells) if c is None]
        foundation = state.foundationPiles[card.suit]
        if self.canPlaceOnFoundation(card, foundation):
            dests.foundations.append(card.suit)
        if place is Place.TABLEAU:
            dests.tableau = self.destinationsWithCapacity(index)
        else:
            for i in range(TABLEAU_COUNT):
                if self.canPlaceOnTableau(card, self.topCard(i)):
                    dests.tableau[i] = 1
        return dests

    def canUndo(self):
        return self.history.canUndo()

    def isWon(self):
        for pile in self.gameState.foundationPiles.values():
            if len(pile) != Card.NUM_PER_SUIT or pile[-1].rank != Rank.KING:
                return False
        return True

    def checkWin(self):
        if self.gameEnded or not self.isWon():
            return False
        self.gameEnded = True
        logger.info("game won in %d moves", self.moveCount)
        self.interface.onWin()
        return True

    # ---- single-card moves ----

    def tableauToTableau(self, fromPile, toPile) -> bool:
        if not (_isIndex(fromPile, TABLEAU_COUNT) and _isIndex(toPile, TABLEAU_COUNT)) or fromPile == toPile:
            return self._malformed("tableauToTableau(%r, %r)", fromPile, toPile)
        card = self.topCard(fromPile)
        if card is None:
            return self._malformed("tableau pile %d is empty", fromPile)
        if not self.canPlaceOnTableau(card, self.topCard(toPile)):
            return self._illegal("%s cannot go onto tableau pile %d", card, toPile)
        self._apply(MoveKind.TABLEAU_TO_TABLEAU, fromPile, toPile)
        return True

    def tableauToFreeCell(self, fromPile, cell) -> bool:
        if not (_isIndex(fromPile, TABLEAU_COUNT) and _isIndex(cell, FREE_CELL_COUNT)):
            return self._malformed("tableauToFreeCell(%r, %r)", fromPile, cell)
        card = self.topCard(fromPile)
        if card is None:
            return self._malformed("tableau pile %d is empty", fromPile)
        if self.gameState.freeCells[cell] is not None:
            return self._illegal("free cell %d is occupied", cell)
        self._apply(MoveKind.TABLEAU_TO_FREE_CELL, fromPile, cell)
        return True

    def tableauToFoundation(self, fromPile, suit: Suit) -> bool:
        if not _isIndex(fromPile, TABLEAU_COUNT) or not isinstance(suit, Suit):
            return self._malformed("tableauToFoundation(%r, %r)", fromPile, suit)
        card = self.topCard(fromPile)
        if card is None:
            return self._malformed("tableau pile %d is empty", fromPile)
        if card.suit != suit or not self.canPlaceOnFoundation(card, self.gameState.foundationPiles[suit]):
            return self._illegal("%s cannot go onto the %s foundation", card, suit.name)
        self._apply(MoveKind.TABLEAU_TO_FOUNDATION, fromPile, suit)
        return True

    def freeCellToTableau(self, cell, toPile) -> bool:
        if not (_isIndex(cell, FREE_CELL_COUNT) and _isIndex(toPile, TABLEAU_COUNT)):
            return self._malformed("freeCellToTableau(%r, %r)", cell, toPile)
        card = self.gameState.freeCells[cell]
        if card is None:
            return self._malformed("free cell %d is empty", cell)
        if not self.canPlaceOnTableau(card, self.topCard(toPile)):
            return self._illegal("%s cannot go onto tableau pile %d", card, toPile)
        self._apply(MoveKind.FREE_CELL_TO_TABLEAU, cell, toPile)
        return True

    def freeCellToFoundation(self, cell, suit: Suit) -> bool:
        if not _isIndex(cell, FREE_CELL_COUNT) or not isinstance(suit, Suit):
            return self._malformed("freeCellToFoundation(%r, %r)", cell, suit)
        card = self.gameState.freeCells[cell]
        if card is None:
            return self._malformed("free cell %d is empty", cell)
        if card.suit != suit or not self.canPlaceOnFoundation(card, self.gameState.foundationPiles[suit]):
            return self._illegal("%s cannot go onto the %s foundation", card, suit.name)
        self._apply(MoveKind.FREE_CELL_TO_FOUNDATION, cell, suit)
        return True

    def freeCellToFreeCell(self, fromCell, toCell) -> bool:
        if not (_isIndex(fromCell, FREE_CELL_COUNT) and _isIndex(toCell, FREE_CELL_COUNT)) or fromCell == toCell:
            return self._malformed("freeCellToFreeCell(%r, %r)", fromCell, toCell)
        if self.gameState.freeCells[fromCell] is None:
            return self._malformed("free cell %d is empty", fromCell)
        if self.gameState.freeCells[toCell] is not None:
            return self._illegal("free cell %d is occupied", toCell)
        self._apply(MoveKind.FREE_CELL_TO_FREE_CELL, fromCell, toCell)
        return True

    # ---- supermoves ----

    def canMoveSequence(self, fromPile, toPile, cardIndices) -> bool:
        """
        :param cardIndices: a contiguous tail of ``movableRun(fromPile)``, in stack order
        """
        if not (_isIndex(fromPile, TABLEAU_COUNT) and _isIndex(toPile, TABLEAU_COUNT)) or fromPile == toPile:
            return self._malformed("moveSequence(%r, %r)", fromPile, toPile)
        try:
            cardIndices = list(cardIndices)
        except TypeError:
            return self._malformed("card indices %r are not a sequence", cardIndices)
        pile = self.gameState.tableauPiles[fromPile]
        if not Rules.isRunSuffix(pile, cardIndices):
            return self._malformed("%r is not a movable tail of tableau pile %d", cardIndices, fromPile)
        capacity = self.maxMovableCards()
        if len(cardIndices) > capacity:
            return self._illegal("%d cards exceed the capacity of %d", len(cardIndices), capacity)
        card = pile[cardIndices[0]]
        if not self.canPlaceOnTableau(card, self.topCard(toPile)):
            return self._illegal("%s cannot go onto tableau pile %d", card, toPile)
        if self._planLegs(fromPile, toPile, len(cardIndices)) is None:
            return self._illegal("no parking room to move %d cards from pile %d to pile %d",
                                 len(cardIndices), fromPile, toPile)
        return True

    def moveSequence(self, fromPile, toPile, cardIndices) -> list:
        """
        Moves a run between tableau piles, one logged move per card.

        :return: the logged moves, leading card first; empty if rejected
        """
        try:
            cardIndices = list(cardIndices)
        except TypeError:
            self._malformed("card indices %r are not a sequence", cardIndices)
            return []
        if not self.canMoveSequence(fromPile, toPile, cardIndices):
            return []
        start = cardIndices[0]
        src = self.gameState.tableauPiles[fromPile]
        dest = self.gameState.tableauPiles[toPile]

        moves = []
        for _ in cardIndices:
            card = src.pop(start)
            dest.append(card)
            move = Move(MoveKind.TABLEAU_TO_TABLEAU, fromPile, toPile, card, start)
            self._record(move)
            moves.append(move)
        return moves

    def planSupermove(self, fromPile, toPile, count) -> list:
        """
        Spells out how the top ``count`` cards of ``fromPile`` reach ``toPile``
        one card at a time through free cells and empty piles.

        Nothing is applied or logged.

        :return: the single-card legs in order; empty if the move is illegal
                 or cannot be carried out with the space available
        """
        if not isinstance(count, int) or isinstance(count, bool) or count < 1:
            self._malformed("planSupermove count %r", count)
            return []
        run = self.movableRun(fromPile)
        if count > len(run) or not self.canMoveSequence(fromPile, toPile, run[len(run) - count:]):
            return []
        return self._planLegs(fromPile, toPile, count)

    def _planLegs(self, fromPile, toPile, count):
        sim = self.gameState.copy()
        cells = [i for i, c in enumerate(sim.freeCells) if c is None]
        piles = [i for i, pile in enumerate(sim.tableauPiles) if len(pile) == 0 and i not in (fromPile, toPile)]
        legs = []
        if not _planRun(sim, legs, count, fromPile, toPile, cells, piles, self.config.isKingOnly()):
            return None
        return legs

    # ---- undo ----

    def undo(self) -> bool:
        move = self.history.undo()
        if move is None:
            logger.debug("nothing to undo")
            return False
        self.moveCount += 1
        if self.gameEnded and not self.isWon():
            self.gameEnded = False
        logger.debug("undid %s", move)
        self.interface.onUndoEvent(move)
        return True

    # ---- internals ----

    def _apply(self, kind: MoveKind, src, dest) -> Move:
        move = self.gameState.relocate(kind, src, dest)
        self._record(move)
        return move

    def _record(self, move: Move):
        self.history.log(move)
        self.moveCount += 1
        logger.debug("move %d: %s", self.moveCount, move)
        self.interface.onEvent(move)
        self.checkWin()

    @staticmethod
    def _illegal(msg, *args):
        logger.debug("rejected: " + msg, *args)
        return False

    @staticmethod
    def _malformed(msg, *args):
        logger.warning("malformed request: " + msg, *args)
        return False

    # ---- layout dump ----

    def saveGameAsLines(self):
        """
        moveCount, free cells, the 4 foundations (in Suit order), then the 8
        tableau piles, one per line.
        """
        state = self.gameState
        lines = [str(self.moveCount)]
        lines.append(",".join(EMPTY_CELL if c is None else str(c.id) for c in state.freeCells))
        for suit in Suit:
            lines.append(encodeStack(state.foundationPiles[suit]))
        for pile in state.tableauPiles:
            lines.append(encodeStack(pile))
        return lines

    def loadGameFromLines(self, lines):
        def lineFilter(s: str):
            return not s.isspace() and len(s) > 0 and not s.startswith("#")

        lines = list(filter(lineFilter, lines))
        expected = 2 + len(Suit) + TABLEAU_COUNT
        if len(lines) != expected:
            raise GameError(f"expected {expected} layout lines, got {len(lines)}")
        state = GameState()
        try:
            moveCount = int(lines[0])
            cells = [c.strip() for c in lines[1].split(",")]
            if len(cells) != FREE_CELL_COUNT:
                raise GameError(f"expected {FREE_CELL_COUNT} free cells, got {len(cells)}")
            state.freeCells = [None if c == EMPTY_CELL else Card.fromId(int(c)) for c in cells]
            for suit, line in zip(Suit, lines[2:6]):
                state.foundationPiles[suit] = decodeStack(line)
            state.tableauPiles = [decodeStack(line) for line in lines[6:]]
        except ValueError as e:
            raise GameError(f"malformed layout: {e}") from e
        for suit, pile in state.foundationPiles.items():
            for i, card in enumerate(pile):
                if card.suit != suit or not Rules.canPlaceOnFoundation(card, pile[:i]):
                    raise GameError(f"{card} is out of place on the {suit.name} foundation")
        cards = state.allCards()
        if len(set(cards)) != len(cards):
            raise GameError("layout contains duplicate cards")

        self.gameState = state
        self.moveCount = moveCount
        self.history = HistoryRecorder(self)
        self.gameEnded = self.isWon()


class HistoryRecorder:
    """Undo log: a stack of atomic moves, newest last."""

    def __init__(self, core):
        self.core = core
        self.lst = []

    def __len__(self):
        return len(self.lst)

    def log(self, move: Move):
        self.lst.append(move)

    def clear(self):
        self.lst = []

    def canUndo(self):
        return len(self.lst) > 0

    def undo(self):
        """
        Reverses the newest move.

        :return: the reversed Move, or None if the log is empty
        """
        if len(self.lst) == 0:
            return None
        move = self.lst[-1]
        state = self.core.gameState
        kind = move.kind
        found = state.peek(kind.destination, move.dest)
        if found != move.card:
            raise GameError(f"cannot undo {move}: found {found} at its destination")
        if kind.source is Place.FREE_CELL and state.freeCells[move.src] is not None:
            raise GameError(f"cannot undo {move}: free cell {move.src} is occupied")
        self.lst.pop()
        state.take(kind.destination, move.dest)
        state.put(kind.source, move.src, move.card, move.srcIdx)
        return move
