import random
from dataclasses import dataclass
from enum import Enum, IntEnum


class Suit(Enum):
    HEARTS = 0
    DIAMONDS = 1
    CLUBS = 2
    SPADES = 3

    @property
    def symbol(self):
        return "♥♦♣♠"[self.value]

    def isRed(self):
        return self is Suit.HEARTS or self is Suit.DIAMONDS

    @staticmethod
    def fromSymbol(s: str):
        """Accepts a suit symbol or its initial letter (``"♠"``, ``"s"``, ``"S"``)."""
        for suit in Suit:
            if s == suit.symbol or s.upper() == suit.name[0]:
                return suit
        raise ValueError(f"unknown suit: {s!r}")


class Rank(IntEnum):
    ACE = 1
    TWO = 2
    THREE = 3
    FOUR = 4
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8
    NINE = 9
    TEN = 10
    JACK = 11
    QUEEN = 12
    KING = 13

    def displayName(self):
        if self is Rank.ACE:
            return "A"
        if self >= Rank.JACK:
            return self.name[0]
        return str(self.value)

    @staticmethod
    def fromName(s: str):
        for rank in Rank:
            if s.upper() == rank.displayName():
                return rank
        raise ValueError(f"unknown rank: {s!r}")


@dataclass(frozen=True)
class Card:
    NUM_PER_SUIT = 13

    suit: Suit
    rank: Rank

    @property
    def id(self):
        return self.suit.value * Card.NUM_PER_SUIT + self.rank - 1

    @staticmethod
    def fromId(id: int):
        if id < 0 or id >= 4 * Card.NUM_PER_SUIT:
            raise ValueError(f"card id out of range: {id}")
        return Card(Suit(id // Card.NUM_PER_SUIT), Rank(id % Card.NUM_PER_SUIT + 1))

    @staticmethod
    def parse(s: str):
        """Parses the short form produced by :meth:`gameStr`, e.g. ``"10♣"`` or ``"QD"``."""
        s = s.strip()
        if len(s) < 2:
            raise ValueError(f"not a card: {s!r}")
        return Card(Suit.fromSymbol(s[-1]), Rank.fromName(s[:-1]))

    def color(self):
        if self.suit.isRed():
            return "red"
        return "black"

    def isRed(self):
        return self.suit.isRed()

    def isOppositeColor(self, other):
        return self.isRed() != other.isRed()

    def suitableAsBaseFor(self, upper):
        """Whether ``upper`` may be stacked on this card in a tableau pile."""
        return self.isOppositeColor(upper) and self.rank == upper.rank + 1

    def gameStr(self):
        return self.rank.displayName() + self.suit.symbol

    def __str__(self):
        return self.gameStr()

    def __repr__(self):
        return f"Card({self.suit.name}, {self.rank.name})"


def newDeck():
    return [Card(suit, rank) for suit in Suit for rank in Rank]


def shuffledDeck(rng: random.Random = None):
    deck = newDeck()
    if rng is None:
        random.shuffle(deck)
    else:
        rng.shuffle(deck)
    return deck


def decodeStack(code: str):
    code = code.strip()
    if code.startswith("empty"):
        return []
    return [Card.fromId(int(s)) for s in code.split(",")]


def encodeStack(cards):
    if len(cards) == 0:
        return "empty"
    return ",".join(str(card.id) for card in cards)
