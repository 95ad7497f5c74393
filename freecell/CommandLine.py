import argparse
import logging

from freecell.Core import Core, GameConfig
from freecell.Interface import Interface

HELP = """commands:
  mv A B [N]   move N cards (default: as many as fit) from tableau A to tableau B
  fc A [C]     tableau A to free cell C (default: first empty cell)
  fd A         tableau A to its foundation
  cf C B       free cell C to tableau B
  cd C         free cell C to its foundation
  cc C D       free cell C to free cell D
  undo | new | help | quit"""


class CommandLineInterface(Interface):

    def printAll(self):
        core = self.core
        state = core.gameState
        cells = "  ".join(f"{c.gameStr():>3}" if c is not None else " --" for c in state.freeCells)
        tops = "  ".join(f"{pile[-1].gameStr():>3}" if pile else " --" for pile in state.foundationPiles.values())
        print(f"Moves: {core.moveCount}        Max movable: {core.maxMovableCards()}")
        print(f"Cells: {cells}    Foundations: {tops}")
        print("----0----1----2----3----4----5----6----7---")
        i = 0
        while True:
            has = False
            line = "   "
            for pile in state.tableauPiles:
                if len(pile) <= i:
                    line += "     "
                    continue
                has = True
                line += f"{pile[i].gameStr():>3}  "
            if not has:
                break
            print(line)
            i += 1
        print()

    def onStart(self):
        print("Game started!")
        self.printAll()

    def notifyRedraw(self):
        self.printAll()

    def onWin(self):
        print("You win!")


def firstEmptyCell(core: Core):
    for i, c in enumerate(core.gameState.freeCells):
        if c is None:
            return i
    return -1


def handleCommand(core: Core, command: str):
    """
    Runs one console command against ``core``.

    :return: a message for the player, or None when the command went through
    """
    words = command.split()
    if len(words) == 0:
        return None
    op, args = words[0], words[1:]
    try:
        nums = [int(a) for a in args]
    except ValueError:
        return "Invalid index!"

    if op == "mv" and len(nums) in (2, 3):
        src, dest = nums[0], nums[1]
        if len(nums) == 3:
            count = nums[2]
        else:
            count = core.destinationsWithCapacity(src).get(dest, 1)
        run = core.movableRun(src)
        if count < 1 or count > len(run):
            return "Cannot move!"
        return None if core.moveSequence(src, dest, run[len(run) - count:]) else "Cannot move!"
    if op == "fc" and len(nums) in (1, 2):
        cell = nums[1] if len(nums) == 2 else firstEmptyCell(core)
        return None if core.tableauToFreeCell(nums[0], cell) else "Cannot move!"
    if op == "fd" and len(nums) == 1:
        card = core.topCard(nums[0])
        if card is None:
            return "Cannot move!"
        return None if core.tableauToFoundation(nums[0], card.suit) else "Cannot move!"
    if op == "cf" and len(nums) == 2:
        return None if core.freeCellToTableau(nums[0], nums[1]) else "Cannot move!"
    if op == "cd" and len(nums) == 1:
        if not 0 <= nums[0] < len(core.gameState.freeCells):
            return "Invalid index!"
        card = core.gameState.freeCells[nums[0]]
        if card is None:
            return "Cannot move!"
        return None if core.freeCellToFoundation(nums[0], card.suit) else "Cannot move!"
    if op == "cc" and len(nums) == 2:
        return None if core.freeCellToFreeCell(nums[0], nums[1]) else "Cannot move!"
    if op == "undo" and len(nums) == 0:
        return None if core.undo() else "Cannot undo!"
    if op == "new" and len(nums) == 0:
        core.startNewGame()
        return None
    if op == "help":
        return HELP
    return "Invalid command!"


def parseArgs(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Play Freecell in the terminal.")
    parser.add_argument("--seed", type=int, default=None, help="Deal seed for a reproducible game.")
    parser.add_argument("--king-only", action="store_true", help="Only kings may start an empty tableau pile.")
    parser.add_argument("--config", type=str, default="", help="Optional key=value config file.")
    parser.add_argument("--verbose", "-v", action="count", default=0, help="Log rejected and applied moves.")
    return parser.parse_args(argv)


def buildConfig(args: argparse.Namespace) -> GameConfig:
    config = GameConfig.loadFromFile(args.config) if args.config else GameConfig()
    if args.seed is not None:
        config.seed = args.seed
    if args.king_only:
        config.emptyTableauRule = "king"
    return config


def main(argv=None):
    args = parseArgs(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose > 1 else logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    core = Core(CommandLineInterface(), buildConfig(args))
    core.startNewGame()
    print(HELP)
    while True:
        try:
            command = input("> ")
        except EOFError:
            break
        if command.strip() == "quit":
            break
        message = handleCommand(core, command)
        if message is not None:
            print(message)


if __name__ == '__main__':
    main()
