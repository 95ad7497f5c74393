import unittest

from freecell.Cards import Card, Rank, Suit
from freecell.Core import Core, GameConfig, GameError, MoveKind
from freecell.Interface import Interface


class RecordingInterface(Interface):
    def __init__(self):
        super().__init__()
        self.undo_events = []
        self.wins = 0

    def onUndoEvent(self, move):
        self.undo_events.append(move)
        super().onUndoEvent(move)

    def onWin(self):
        self.wins += 1


def cards(*codes):
    return [Card.parse(code) for code in codes]


def make_core(tableau, cells=(), foundations=None):
    ui = RecordingInterface()
    core = Core(ui)
    state = core.gameState
    for pile, codes in zip(state.tableauPiles, tableau):
        pile.extend(cards(*codes))
    for i, code in enumerate(cells):
        state.freeCells[i] = Card.parse(code)
    for suit, pile in (foundations or {}).items():
        state.foundationPiles[suit].extend(pile)
    return core, ui


def layout(core):
    return core.saveGameAsLines()[1:]


class UndoTestCase(unittest.TestCase):
    def assertUndoRestores(self, core, move):
        before = layout(core)
        count = core.moveCount
        self.assertTrue(move())
        self.assertTrue(core.canUndo())
        self.assertTrue(core.undo())
        self.assertEqual(before, layout(core))
        self.assertEqual(count + 2, core.moveCount)
        self.assertFalse(core.canUndo())

    def test_undo_each_move_kind(self):
        core, _ = make_core([["KC", "QH"], ["KS"], ["AD"]], cells=["AS"])
        self.assertUndoRestores(core, lambda: core.tableauToTableau(1, 3))
        self.assertUndoRestores(core, lambda: core.tableauToFreeCell(0, 2))
        self.assertUndoRestores(core, lambda: core.tableauToFoundation(2, Suit.DIAMONDS))
        self.assertUndoRestores(core, lambda: core.freeCellToTableau(0, 4))
        self.assertUndoRestores(core, lambda: core.freeCellToFoundation(0, Suit.SPADES))
        self.assertUndoRestores(core, lambda: core.freeCellToFreeCell(0, 3))

    def test_undo_returns_card_to_its_position(self):
        core, ui = make_core([["KC", "QH"], ["KS"]])
        self.assertTrue(core.tableauToTableau(0, 1))
        self.assertTrue(core.undo())
        self.assertEqual(cards("KC", "QH"), core.gameState.tableauPiles[0])
        self.assertEqual(cards("KS"), core.gameState.tableauPiles[1])
        self.assertEqual(1, len(ui.undo_events))
        self.assertEqual(MoveKind.TABLEAU_TO_TABLEAU, ui.undo_events[0].kind)

    def test_undo_is_newest_first(self):
        core, _ = make_core([["KC", "QH", "JS"]])
        self.assertTrue(core.tableauToFreeCell(0, 0))
        self.assertTrue(core.tableauToFreeCell(0, 1))
        self.assertTrue(core.undo())
        self.assertEqual([Card.parse("JS"), None, None, None], core.gameState.freeCells)
        self.assertTrue(core.undo())
        self.assertEqual(cards("KC", "QH", "JS"), core.gameState.tableauPiles[0])
        self.assertEqual(4, core.moveCount)
        self.assertFalse(core.undo())
        self.assertEqual(4, core.moveCount)

    def test_undo_sequence_move_one_card_at_a_time(self):
        core, _ = make_core([["QD", "5C", "4D", "3C"], ["6H"], ["KS"]])
        before = layout(core)
        moves = core.moveSequence(0, 1, [1, 2, 3])
        self.assertEqual(3, len(moves))

        self.assertTrue(core.undo())
        self.assertEqual(cards("QD", "3C"), core.gameState.tableauPiles[0])
        self.assertEqual(cards("6H", "5C", "4D"), core.gameState.tableauPiles[1])
        self.assertTrue(core.undo())
        self.assertTrue(core.undo())
        self.assertEqual(before, layout(core))
        self.assertEqual(6, core.moveCount)
        self.assertEqual([None] * 4, core.gameState.freeCells)

    def test_undo_after_win_reopens_the_game(self):
        foundations = {suit: [Card(suit, rank) for rank in Rank] for suit in Suit}
        foundations[Suit.SPADES] = foundations[Suit.SPADES][:-1]
        core, ui = make_core([], cells=["KS"], foundations=foundations)
        self.assertTrue(core.freeCellToFoundation(0, Suit.SPADES))
        self.assertTrue(core.gameEnded)
        self.assertEqual(1, ui.wins)

        self.assertTrue(core.undo())
        self.assertFalse(core.gameEnded)
        self.assertFalse(core.isWon())
        self.assertTrue(core.freeCellToFoundation(0, Suit.SPADES))
        self.assertEqual(2, ui.wins)

    def test_undo_detects_tampered_state(self):
        core, _ = make_core([["KC"], ["QH"]])
        self.assertTrue(core.tableauToTableau(1, 0))
        core.gameState.tableauPiles[0].pop()
        with self.assertRaises(GameError):
            core.undo()
        self.assertTrue(core.canUndo())

    def test_undo_everything_restores_the_deal(self):
        config = GameConfig()
        config.seed = 11
        core = Core(config=config)
        core.startNewGame()
        initial = layout(core)

        for a in range(8):
            for suit in Suit:
                core.tableauToFoundation(a, suit)
            for b in range(8):
                run = core.movableRun(a)
                core.moveSequence(a, b, run[-1:])
            core.tableauToFreeCell(a, a % 4)
            for cell in range(4):
                core.freeCellToTableau(cell, (a + 1) % 8)
            self.assertTrue(core.gameState.isCompleteDeck())

        made = core.moveCount
        self.assertEqual(made, len(core.history))
        while core.canUndo():
            core.undo()
        self.assertEqual(initial, layout(core))
        self.assertEqual(2 * made, core.moveCount)


if __name__ == "__main__":
    unittest.main()
