from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container
from textual.events import ScreenResume
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Label, ListItem, ListView, Markdown

from utils.messages import CartChangedMessage, UserLogoutMessage
from utils.pure import generate_markdown_table
from views.modal_dialog import ConfirmDialogModal, QuitDialogModal


class Sidebar(Container):
    init_mode = ""

    def compose(self) -> ComposeResult:
        yield Label("User Info", id="label-info-1")
        yield Markdown("", id="md-userinfo")
        yield Button("Log out", id="btn-logout", variant="error")
        yield Label("Menu", id="label-info-2")
        yield ListView(
            *[
                ListItem(Label(v), id="list-menu-item-" + k)
                for k, v in self.app.MENU_MODES.items()
            ],
            id="list-menu",
        )

    async def on_mount(self):
        self.init_mode = self.app.current_mode
        await self.refresh_user()

    async def refresh_user(self) -> None:
        """Redraw user info; screens outlive a logout, so this runs on every resume."""
        user = self.app.state.current_user
        if user:
            table_rows = [
                ["Username", user.username],
                ["Name", user.name],
                ["Role", user.role.capitalize()],
            ]
            md_table_str = generate_markdown_table(None, table_rows, ["l", "l"])
            await self.query_one("#md-userinfo", Markdown).update(md_table_str)

        self.refresh_cart_label()
        self.highlight_item(self.init_mode)

    def refresh_cart_label(self) -> None:
        for item in self.query("#list-menu-item-cart"):
            count = self.app.state.cart_item_count
            item.query_one(Label).update(f"Cart ({count})")

    async def on_list_view_selected(self, event: ListView.Selected):
        selected_mode = event.item.id.removeprefix("list-menu-item-")
        self.highlight_item(self.init_mode)
        if self.app.current_mode != selected_mode:
            await self.app.switch_mode(selected_mode)

    @on(Button.Pressed, "#btn-logout")
    @work()
    async def handle_logout(self):
        if not await self.app.push_screen_wait(
            ConfirmDialogModal("Are you sure you want to log out?")
        ):
            return

        self.post_message(UserLogoutMessage())

    def highlight_item(self, mode_str: str):
        list_menu = self.query_one("#list-menu")
        for item in list_menu.children:
            item.highlighted = mode_str in item.id


class BaseScreen(Screen):
    """
    Inherited by all screens, contains common elements like
    headers, footers, sidebar, and keybindings.
    """

    BINDINGS = [
        Binding("ctrl+z", "quit", "Quit App", show=True),
    ]

    def __init__(self):
        super().__init__()

        self.configure()

    def configure(
        self,
        header_sub_title: str = "PoliMarket",
        show_sidebar: bool = True,
    ) -> None:
        self.app.title = "PoliMarket POS"
        self.sub_title = header_sub_title
        for k, v in self.app.MODES.items():
            if isinstance(self, v) and k in self.app.MENU_MODES:
                self.sub_title = self.app.MENU_MODES[k]

        self._show_sidebar = show_sidebar

    def compose(self) -> ComposeResult:
        if self._show_sidebar:
            yield Sidebar()
        yield Header()
        yield Footer(show_command_palette=False)

    @on(ScreenResume)
    async def handle_sidebar_resume(self):
        for sidebar in self.query(Sidebar):
            await sidebar.refresh_user()

    @on(CartChangedMessage)
    def handle_cart_badge(self):
        for sidebar in self.query(Sidebar):
            sidebar.refresh_cart_label()

    @work()
    async def action_quit(self):
        await self.app.push_screen_wait(QuitDialogModal())
