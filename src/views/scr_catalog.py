from rich.text import Text
from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label

from utils.pure import format_money
from views.base_screen import BaseScreen
from views.modal_add_product import AddProductModal
from views.modal_prod_detail import ProdDetailModal
from views.modal_sellers import ManageSellersModal


class CatalogScreen(BaseScreen):
    """
    Catalog browsing for every role; admins also get the product and
    seller forms.
    """

    # only here to be displayed in footer
    BINDINGS = [
        Binding("enter", "noop", "View Product", show=True, key_display="⏎"),
    ]

    COLUMNS = ("ID", "Name", "Price", "Stock")

    def __init__(self):
        super().__init__()

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield DataTable(id="table-catalog")
        with Horizontal(id="hort-admin-buttons"):
            yield Label("", id="label-catalog-count")
            yield Button("Add Product", id="btn-add-product", variant="success")
            yield Button("Manage Sellers", id="btn-manage-sellers")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.focus()

    def action_noop(self) -> None:
        pass

    @on(ScreenResume)
    def refresh_catalog(self) -> None:
        """Stock and the product list change under us (checkout, new products)."""
        state = self.app.state
        table = self.query_one(DataTable)
        if not table.columns:
            table.add_columns(*self.COLUMNS)
        table.clear()
        for p in state.products:
            stock = Text(str(p.stock), style="" if p.stock > 0 else "bold red")
            table.add_row(p.id, p.name, format_money(p.price), stock, key=p.id)

        self.query_one("#label-catalog-count", Label).update(
            f"{len(state.products)} products"
        )

        is_admin = bool(state.current_user and state.current_user.role == "admin")
        self.query_one("#btn-add-product").display = is_admin
        self.query_one("#btn-manage-sellers").display = is_admin

    @on(DataTable.RowSelected)
    @work()
    async def handle_view_product(self, event: DataTable.RowSelected) -> None:
        product = self.app.state.find_product(event.row_key.value)
        if product is None:
            return
        await self.app.push_screen_wait(ProdDetailModal(product))

    @on(Button.Pressed, "#btn-add-product")
    @work()
    async def handle_add_product(self) -> None:
        if await self.app.push_screen_wait(AddProductModal()):
            self.notify("Product added.")

    @on(Button.Pressed, "#btn-manage-sellers")
    @work()
    async def handle_manage_sellers(self) -> None:
        await self.app.push_screen_wait(ManageSellersModal())
