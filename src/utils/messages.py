from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    broadcasted when the user confirms logging out, handled at app level
    """

    bubble = True


class CartChangedMessage(Message):
    """
    Fired by a cart line after a quantity change so the cart screen and the
    sidebar badge can redraw. Modals don't need it: the screen below gets
    ScreenResume when they close.
    """

    bubble = True
