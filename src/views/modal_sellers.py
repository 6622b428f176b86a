from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, DataTable, Input, Label

from views.modal_dialog import ConfirmDialogModal


class ManageSellersModal(ModalScreen[None]):
    """
    Admin panel: list sellers, add one, delete the highlighted one.
    Only seller accounts are listed, so admins can't be deleted from here.
    """

    def compose(self) -> ComposeResult:
        with Vertical(id="div-sellers"):
            yield Label("Sellers", id="label-sellers-title")
            yield DataTable(id="table-sellers")
            with Horizontal():
                yield Button("Delete Selected", id="btn-delete-seller", variant="error")
            yield Label("New Seller")
            yield Label("Name")
            yield Input(placeholder="J. Doe", id="input-seller-name")
            yield Label("Username")
            yield Input(placeholder="jdoe", id="input-seller-username")
            yield Label("", id="label-seller-error")
            with Horizontal():
                yield Button("Close", id="btn-close")
                yield Button(
                    "Add Seller", id="btn-add-seller", variant="primary", disabled=True
                )

    def on_mount(self):
        self.app.state.open_manage_sellers()
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.add_columns("Username", "Name")
        self.refresh_sellers()
        self.query_one("#input-seller-name").focus()

    def refresh_sellers(self) -> None:
        table = self.query_one(DataTable)
        table.clear()
        for seller in self.app.state.sellers:
            table.add_row(seller.username, seller.name, key=seller.username)
        self.query_one("#btn-delete-seller").disabled = table.row_count == 0

    def refresh_form(self) -> None:
        state = self.app.state
        self.query_one("#label-seller-error", Label).update(state.add_seller_error or "")
        self.query_one("#btn-add-seller").disabled = not state.is_new_seller_form_valid

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.close_panel()

    def close_panel(self) -> None:
        self.app.state.close_manage_sellers()
        self.dismiss(None)

    @on(Input.Changed, "#input-seller-name")
    def handle_name_changed(self, message: Input.Changed) -> None:
        self.app.state.set_seller_field("name", message.value)
        self.refresh_form()

    @on(Input.Changed, "#input-seller-username")
    def handle_username_changed(self, message: Input.Changed) -> None:
        self.app.state.set_seller_field("username", message.value)
        self.refresh_form()

    @on(Button.Pressed, "#btn-add-seller")
    def handle_add_seller(self) -> None:
        seller = self.app.state.add_seller()
        if seller is None:
            self.refresh_form()
            self.query_one("#input-seller-username").focus()
            return

        # clearing the inputs fires Input.Changed, which keeps the draft empty
        self.query_one("#input-seller-name", Input).value = ""
        self.query_one("#input-seller-username", Input).value = ""
        self.refresh_sellers()
        self.refresh_form()
        self.notify(f"Seller {seller.username} added with the default password.")

    @on(Button.Pressed, "#btn-delete-seller")
    @work()
    async def handle_delete_seller(self) -> None:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        username = row_key.value

        if not await self.app.push_screen_wait(
            ConfirmDialogModal(f"Delete seller {username}?", tone="error")
        ):
            return

        self.app.state.delete_seller(username)
        self.refresh_sellers()
        self.notify(f"Seller {username} deleted.")

    @on(Button.Pressed, "#btn-close")
    def handle_close(self) -> None:
        self.close_panel()
