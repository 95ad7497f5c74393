class Interface:
    """
    Receives notifications from a Core. Subclasses override what they need;
    every callback runs synchronously inside the engine call that caused it.
    """

    def __init__(self):
        self.core = None

    def onStart(self):
        pass

    def onEvent(self, move):
        """
        A single card was moved and logged. A supermove of N cards arrives
        as N calls, leading card first.
        """
        self.notifyRedraw()

    def onUndoEvent(self, move):
        """
        :param move: the logged Move that has just been reversed
        """
        self.notifyRedraw()

    def notifyRedraw(self):
        pass

    def onWin(self):
        pass
