from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from db.storage import Storage
from services.gemini import DescriptionGenerator
from utils.logger import get_logger
from utils.messages import QuitRequestedMessage, UserLogoutMessage
from utils.state import PosState
from views.scr_cart import CartScreen
from views.scr_catalog import CatalogScreen
from views.scr_login import LoginScreen

_logger = get_logger(__name__)


class PosApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "catalog": CatalogScreen,
        "cart": CartScreen,
    }

    # same menu for admins and sellers; admin-only actions live on the catalog
    MENU_MODES = {"catalog": "Catalog", "cart": "Cart"}

    CSS_PATH = "views/styles/index.tcss"

    state: PosState

    def __init__(self, state: PosState = None):
        super().__init__()
        self.state = state or PosState.initial(
            Storage(), DescriptionGenerator.from_config()
        )

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.main_flow()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(UserLogoutMessage)
    def handle_user_logout(self):
        self.state.logout()
        self.notify("Logout successful.")
        self.main_flow()

    @on(QuitRequestedMessage)
    def handle_quit(self):
        self.exit()

    @work
    async def main_flow(self):
        # a session restored from storage skips the login screen
        if not self.state.current_user:
            await self.push_screen_wait(LoginScreen())
        _logger.info(f"Session started for '{self.state.current_user.username}'.")
        if self.current_mode != "catalog":
            await self.switch_mode("catalog")


def run() -> None:
    PosApp().run()


if __name__ == "__main__":
    run()
