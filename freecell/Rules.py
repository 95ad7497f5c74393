"""
Pure Freecell rules: placement predicates and run analysis.

Nothing in here mutates its arguments; piles are plain lists of cards with the
exposed card last.
"""
from freecell.Cards import Card, Rank


def canPlaceOnTableau(card: Card, destTop: Card = None, kingOnly=False) -> bool:
    if destTop is None:
        return card.rank == Rank.KING if kingOnly else True
    return destTop.suitableAsBaseFor(card)


def canPlaceOnFoundation(card: Card, pile=None) -> bool:
    if not pile:
        return card.rank == Rank.ACE
    top = pile[-1]
    return card.suit == top.suit and card.rank == top.rank + 1


def canPlaceOnFreeCell(freeCells) -> bool:
    return any(c is None for c in freeCells)


def movableRun(pile) -> list:
    """
    Indices of the longest alternating, descending run ending at the exposed card.

    :param pile: cards from bottom to top
    :return: pile indices in stack order, least exposed first
    """
    if len(pile) == 0:
        return []
    start = len(pile) - 1
    while start > 0 and pile[start - 1].suitableAsBaseFor(pile[start]):
        start -= 1
    return list(range(start, len(pile)))


def maxMovableCards(emptyFreeCells: int, emptyTableauPiles: int) -> int:
    return (emptyFreeCells + 1) * 2 ** emptyTableauPiles


def longestPlaceableSuffix(pile, run, destTop: Card, capacity: int, kingOnly=False) -> int:
    """
    Length of the longest tail of ``run`` that fits in ``capacity`` and whose
    leading card may go onto ``destTop``; 0 when there is none.
    """
    length = min(len(run), capacity)
    while length > 0:
        if canPlaceOnTableau(pile[run[-length]], destTop, kingOnly):
            return length
        length -= 1
    return 0


def isRunSuffix(pile, cardIndices) -> bool:
    """Whether ``cardIndices`` is a contiguous tail of the pile's movable run."""
    if len(cardIndices) == 0:
        return False
    run = movableRun(pile)
    if len(cardIndices) > len(run):
        return False
    return list(cardIndices) == run[len(run) - len(cardIndices):]
