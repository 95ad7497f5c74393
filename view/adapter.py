from freecell.Cards import Card, Suit
from freecell.Core import Core, Move
from view.view_model import AnimationEvent, CardView, GameViewModel, PileView


class CoreAdapter:
    """Bridges the engine state and move log to a renderer-friendly model."""

    @staticmethod
    def card_view(card: Card) -> CardView:
        return CardView(id=card.id, suit=card.suit.name, rank=int(card.rank), label=card.gameStr(), red=card.isRed())

    @staticmethod
    def snapshot(core: Core) -> GameViewModel:
        state = core.gameState
        tableau = []
        for i, pile in enumerate(state.tableauPiles):
            run = core.movableRun(i)
            tableau.append(
                PileView(
                    cards=tuple(CoreAdapter.card_view(card) for card in pile),
                    run_start=run[0] if run else len(pile),
                )
            )
        free_cells = tuple(None if card is None else CoreAdapter.card_view(card) for card in state.freeCells)
        foundations = {
            suit.name: tuple(CoreAdapter.card_view(card) for card in pile)
            for suit, pile in state.foundationPiles.items()
        }
        return GameViewModel(
            tableau=tuple(tableau),
            free_cells=free_cells,
            foundations=foundations,
            move_count=core.moveCount,
            max_movable=core.maxMovableCards(),
            can_undo=core.canUndo(),
            won=core.isWon(),
        )

    @staticmethod
    def _location(place, index):
        if isinstance(index, Suit):
            index = index.name
        return {"place": place.value, "index": index}

    @staticmethod
    def event_to_animation(move: Move) -> AnimationEvent:
        return AnimationEvent(
            type="MOVE",
            payload={
                "card": move.card.gameStr(),
                "from": CoreAdapter._location(move.kind.source, move.src),
                "to": CoreAdapter._location(move.kind.destination, move.dest),
            },
        )

    @staticmethod
    def undo_to_animation(move: Move) -> AnimationEvent:
        return AnimationEvent(
            type="UNDO",
            payload={
                "card": move.card.gameStr(),
                "from": CoreAdapter._location(move.kind.destination, move.dest),
                "to": CoreAdapter._location(move.kind.source, move.src),
            },
        )

    @staticmethod
    def supermove_to_animations(legs) -> list[AnimationEvent]:
        return [CoreAdapter.event_to_animation(leg) for leg in legs]
